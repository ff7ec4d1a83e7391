import unittest

from onboarding import OnboardingFlow


class OnboardingFlowTests(unittest.TestCase):
    def test_next_next_back_lands_on_second_step(self):
        flow = OnboardingFlow(step_count=3)
        flow.next()
        flow.next()
        flow.back()
        self.assertEqual(flow.step_index, 1)
        self.assertFalse(flow.completed)

    def test_skip_from_first_step_completes(self):
        flow = OnboardingFlow(step_count=3)
        flow.skip()
        self.assertTrue(flow.completed)
        self.assertEqual(flow.step_index, 0)

    def test_next_on_last_step_completes(self):
        flow = OnboardingFlow(step_count=3, step_index=2)
        self.assertTrue(flow.is_last)
        flow.next()
        self.assertTrue(flow.completed)
        self.assertEqual(flow.step_index, 2)

    def test_back_on_first_step_is_noop(self):
        flow = OnboardingFlow(step_count=3)
        flow.back()
        self.assertEqual(flow.step_index, 0)
        self.assertTrue(flow.is_first)

    def test_jump_to(self):
        flow = OnboardingFlow(step_count=3)
        flow.jump_to(2)
        self.assertEqual(flow.step_index, 2)
        with self.assertRaises(ValueError):
            flow.jump_to(3)
        with self.assertRaises(ValueError):
            flow.jump_to(-1)
        self.assertEqual(flow.step_index, 2)

    def test_transitions_after_completion_are_ignored(self):
        flow = OnboardingFlow(step_count=3, step_index=1)
        flow.complete()
        flow.next()
        flow.back()
        flow.jump_to(0)
        self.assertEqual(flow.step_index, 1)
        self.assertTrue(flow.completed)

    def test_progress_percent(self):
        self.assertEqual(OnboardingFlow(step_count=3).progress_percent, 33)
        self.assertEqual(OnboardingFlow(step_count=3, step_index=1).progress_percent, 67)
        self.assertEqual(OnboardingFlow(step_count=3, step_index=2).progress_percent, 100)

    def test_apply_dispatches_form_actions(self):
        flow = OnboardingFlow(step_count=3)
        flow.apply("next")
        flow.apply("jump", 0)
        flow.apply("next")
        self.assertEqual(flow.step_index, 1)
        flow.apply("skip")
        self.assertTrue(flow.completed)
        with self.assertRaises(ValueError):
            OnboardingFlow().apply("sideways")

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            OnboardingFlow(step_count=0)
        with self.assertRaises(ValueError):
            OnboardingFlow(step_count=3, step_index=3)


if __name__ == "__main__":
    unittest.main()
