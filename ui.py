import html
from typing import Optional
from urllib.parse import quote_plus

from config import SEVERITY_LABELS
from schemas import User


def _severity_color(severity: str) -> str:
    return {
        "low": "#22c55e",     # green
        "medium": "#eab308",  # yellow
        "high": "#ef4444",    # red
    }.get(severity, "#9ca3af")


def _severity_badge(severity: str) -> str:
    label = SEVERITY_LABELS.get(severity, severity)
    return (
        f'<span class="pill" style="background:{_severity_color(severity)};color:#fff;">'
        f'{html.escape(label)}</span>'
    )


def _banners(error: str = "", success: str = "") -> str:
    out = ""
    if error:
        out += f'<div class="alert">{html.escape(error)}</div>'
    if success:
        out += f'<div class="success">{html.escape(success)}</div>'
    return out


def _nav_bar(user: Optional[User] = None) -> str:
    greeting = ""
    if user is not None:
        greeting = (
            '<span style="color:rgba(255,255,255,0.75); font-size:13px;">'
            f'Hi, {html.escape(user.full_name or "there")}</span>'
        )
    return (
        '<nav style="background:#0f172a;">'
        '<div style="padding:0 24px; height:52px; display:flex; align-items:center; gap:16px;">'
        '<a href="/dashboard" style="font-weight:800; color:#fff; font-size:15px;'
        ' text-decoration:none; margin-right:auto;">GLP-Guide</a>'
        + greeting
        + '<form method="post" action="/logout" style="margin:0;">'
        '<button type="submit" style="background:transparent; border:1px solid rgba(255,255,255,0.4);'
        ' color:rgba(255,255,255,0.75); border-radius:6px; padding:4px 12px;'
        ' font-size:13px; cursor:pointer; font-family:inherit;">Log Out</button>'
        '</form>'
        '</div>'
        '</nav>'
    )


def _dashboard_tabs(active: str) -> str:
    def lnk(href, label, key):
        s = (
            "font-weight:700;color:#047857;border-bottom:2px solid #10b981;padding-bottom:2px;"
            if active == key else "color:#6b7280;"
        )
        return f'<a href="{href}" style="text-decoration:none;font-size:14px;{s}">{label}</a>'
    return (
        '<div style="display:flex;gap:20px;border-bottom:1px solid #e5e7eb;'
        'padding-bottom:12px;margin:20px 0;flex-wrap:wrap;">'
        + lnk("/dashboard/doses",    "Doses",    "doses")
        + lnk("/dashboard/symptoms", "Symptoms", "symptoms")
        + lnk("/dashboard/reports",  "Timeline", "reports")
        + lnk("/dashboard/progress", "Progress", "progress")
        + "</div>"
    )


def _stats_cards(stats: dict) -> str:
    def card(label, value, color):
        shown = "-" if value is None else html.escape(str(value))
        return (
            '<div class="stat">'
            f'<div style="font-size:12px;color:#6b7280;">{label}</div>'
            f'<div style="font-size:26px;font-weight:700;color:{color};">{shown}</div>'
            '</div>'
        )
    return (
        '<div class="stats">'
        + card("Total doses", stats.get("total_doses"), "#047857")
        + card("Last dose", stats.get("last_dose"), "#1d4ed8")
        + card("Symptom logs", stats.get("symptoms_logged"), "#c2410c")
        + card("Progress reports", stats.get("reports_created"), "#6d28d9")
        + "</div>"
    )


def _page(title: str, body: str, user: Optional[User] = None) -> str:
    nav = _nav_bar(user) if user is not None else ""
    return f"""<!DOCTYPE html>
<html>
<head>{PAGE_STYLE}<title>{html.escape(title)} · GLP-Guide</title></head>
<body>
  {nav}
  <div class="container">
{body}
  </div>
</body>
</html>
"""


PAGE_STYLE = """
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <script>
    (function () {
      function setCookie(name, value) {
        document.cookie = name + "=" + encodeURIComponent(value) + "; path=/; max-age=31536000; SameSite=Lax";
      }
      function clientNowLocal() {
        var n = new Date();
        var l = new Date(n.getTime() - n.getTimezoneOffset() * 60000);
        return l.toISOString().slice(0, 16);
      }
      setCookie("tz_offset", String(new Date().getTimezoneOffset()));
      function bindForms() {
        var nowStr = clientNowLocal();
        document.querySelectorAll('input[type="date"]').forEach(function (el) {
          if (!el.value && !el.dataset.noClientDefault) el.value = nowStr.slice(0, 10);
        });
        document.querySelectorAll('input[type="time"]').forEach(function (el) {
          if (!el.value && !el.dataset.noClientDefault) el.value = nowStr.slice(11, 16);
        });
        // One request at a time: disable submit controls until the page reloads.
        document.querySelectorAll("form").forEach(function (f) {
          f.addEventListener("submit", function () {
            if (f.dataset.inFlight === "1") return;
            f.dataset.inFlight = "1";
            f.querySelectorAll('button[type="submit"]').forEach(function (b) {
              setTimeout(function () { b.disabled = true; }, 0);
            });
          });
        });
      }
      if (document.readyState === "loading") {
        document.addEventListener("DOMContentLoaded", bindForms);
      } else {
        bindForms();
      }
    })();
  </script>
  <style>
    body { font-family: system-ui, sans-serif; background: #f5f5f5; margin: 0; padding: 0; color: #222; }
    .container { max-width: 720px; margin: 0 auto; padding: 24px; }
    h1 { margin-bottom: 4px; }
    h2 { font-size: 18px; margin: 24px 0 8px; }
    .card { background: #fff; border: 1px solid #e0e0e0; border-radius: 8px; padding: 16px; margin: 12px 0; }
    .card-header { display: flex; align-items: center; gap: 10px; }
    .card-name { font-size: 17px; font-weight: 600; }
    .card-ts { font-size: 12px; color: #888; margin-top: 2px; }
    .card-notes { margin: 10px 0 0; font-size: 14px; color: #444; }
    .pill { display: inline-block; border-radius: 10px; padding: 2px 8px; font-size: 12px; font-weight: 700; }
    .tag { display: inline-block; background: #f0f9ff; border: 1px solid #bae6fd; color: #0369a1;
           border-radius: 20px; padding: 2px 10px; font-size: 12px; margin: 2px 2px 2px 0; }
    .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(140px, 1fr)); gap: 12px; }
    .stat { background: #fff; border: 1px solid #e0e0e0; border-radius: 8px; padding: 12px 14px; }
    .btn-delete { background: none; border: 1px solid #e0e0e0;
                  border-radius: 6px; padding: 4px 10px; font-size: 13px; color: #888;
                  cursor: pointer; margin-left: auto; }
    .btn-delete:hover { background: #fee2e2; border-color: #ef4444; color: #ef4444; }
    .btn-primary { background: #10b981; color: #fff; border: none; border-radius: 8px;
                   padding: 10px 22px; font-size: 15px; cursor: pointer; font-weight: 600; }
    .btn-primary:hover { background: #059669; }
    .btn-primary:disabled { opacity: .6; cursor: default; }
    .btn-secondary { background: #fff; color: #374151; border: 1px solid #d1d5db; border-radius: 8px;
                     padding: 10px 22px; font-size: 15px; cursor: pointer; }
    .btn-link { background: none; border: none; color: #6b7280; cursor: pointer; font-size: 14px; }
    .form-group { margin-bottom: 20px; }
    .form-row { display: flex; gap: 12px; }
    .form-row .form-group { flex: 1; }
    label { display: block; font-weight: 600; font-size: 14px; margin-bottom: 6px; }
    label.check { font-weight: 400; display: flex; gap: 8px; align-items: center; margin-bottom: 4px; }
    input[type=text], input[type=password], input[type=email], input[type=number], input[type=date],
    input[type=time], textarea { width: 100%; box-sizing: border-box; border: 1px solid #d1d5db;
      border-radius: 6px; padding: 8px 10px; font-size: 15px; font-family: inherit; }
    .alert { background: #fee2e2; border: 1px solid #fca5a5; color: #b91c1c;
             border-radius: 6px; padding: 10px 14px; margin-bottom: 16px; font-size: 14px; }
    .success { background: #dcfce7; border: 1px solid #86efac; color: #15803d;
               border-radius: 6px; padding: 10px 14px; margin-bottom: 16px; font-size: 14px; }
    .empty { color: #888; font-style: italic; margin-top: 16px; }
    .timeline { border-left: 2px solid #e5e7eb; margin-left: 10px; padding-left: 18px; }
    .dots { display: flex; gap: 8px; justify-content: center; margin-top: 16px; }
    .dot { width: 10px; height: 10px; border-radius: 50%; border: none; background: #d1d5db; cursor: pointer; padding: 0; }
    .dot.active { background: #10b981; width: 24px; border-radius: 5px; }
    .progress { height: 8px; background: #e5e7eb; border-radius: 4px; overflow: hidden; }
    .progress > div { height: 100%; background: #10b981; }
    @media (max-width: 640px) {
      .container { padding: 16px; }
      .form-row { flex-direction: column; gap: 0; }
    }
  </style>
"""


def _notify_url(path: str, error: str = "", success: str = "") -> str:
    if error:
        return f"{path}?error={quote_plus(error)}"
    if success:
        return f"{path}?success={quote_plus(success)}"
    return path
