import unittest

from shared import spam


class ContactSpamScoreTest(unittest.TestCase):
    def test_genuine_enquiry(self):
        result = spam.score_contact_submission(
            "Jane Doe",
            "jane@acme.com",
            "We need a 6x3 stand for Gitex, could you send a quotation?",
            company_name="Acme",
        )
        self.assertFalse(result.is_spam)
        self.assertEqual(result.score, 0.0)
        self.assertEqual(result.reasons, [])

    def test_keywords_push_over_threshold(self):
        result = spam.score_contact_submission(
            "Bob", "bob@example.com", "Congratulations, you are a winner of our draw"
        )
        self.assertTrue(result.is_spam)
        self.assertAlmostEqual(result.score, 0.6)
        self.assertIn("Contains spam keyword: winner", result.reasons)

    def test_short_message_alone_is_not_spam(self):
        result = spam.score_contact_submission("Bob", "bob@example.com", "hi")
        self.assertFalse(result.is_spam)
        self.assertAlmostEqual(result.score, 0.2)

    def test_caps_and_short_message_reach_threshold_exactly(self):
        # 0.3 keyword + 0.2 caps lands on 0.5.
        result = spam.score_contact_submission(
            "Bob", "bob@example.com", "ACT NOW AND ORDER YOUR STAND TODAY"
        )
        self.assertTrue(result.is_spam)
        self.assertAlmostEqual(result.score, 0.5)

    def test_suspicious_email(self):
        result = spam.score_contact_submission(
            "Bob", "123456789@promo.tk", "Please call me about your booths."
        )
        self.assertTrue(result.is_spam)
        self.assertIn("Suspicious email pattern", result.reasons)

    def test_score_is_capped(self):
        result = spam.score_contact_submission(
            "casino lottery",
            "99999@x.tk",
            "viagra casino lottery winner click here free money aaaaaa",
        )
        self.assertTrue(result.is_spam)
        self.assertEqual(result.score, 1.0)


class EventSpamTest(unittest.TestCase):
    def test_genuine(self):
        self.assertFalse(
            spam.is_event_submission_spam(
                "John Smith", "john@example.com", "Looking forward to meeting at the expo"
            )
        )

    def test_keyword(self):
        self.assertTrue(
            spam.is_event_submission_spam("John", "john@example.com", "Invest in bitcoin")
        )

    def test_too_many_links(self):
        message = "see http://a.com http://b.com https://c.com"
        self.assertTrue(spam.is_event_submission_spam("John", "john@example.com", message))

    def test_shouting(self):
        self.assertTrue(
            spam.is_event_submission_spam("JOHN", "john@example.com", "PLEASE CALL ME BACK")
        )

    def test_disposable_domain(self):
        self.assertTrue(
            spam.is_event_submission_spam("John", "john@mailinator.com", "Hello there")
        )

    def test_missing_message(self):
        self.assertFalse(spam.is_event_submission_spam("John", "john@example.com", None))


if __name__ == "__main__":
    unittest.main()
