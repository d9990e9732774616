import unittest

from socialpulse.ingestion.record_types import Record


TWEET = {
    "text": "Short version #Rome https://t.co/abc",
    "truncated": True,
    "user": {"screen_name": "someone"},
    "entities": {"hashtags": [{"text": "Rome", "indices": [14, 19]}]},
    "extended_tweet": {
        "full_text": "Short version #Rome with the rest of the text #Travel",
        "entities": {"hashtags": [{"text": "Rome"}, {"text": "Travel"}]},
    },
}


class TestRecord(unittest.TestCase):
    def test_from_payload_prefers_extended(self):
        r = Record.from_payload(TWEET)
        self.assertEqual(r.body, TWEET["extended_tweet"]["full_text"])
        self.assertEqual(r.preparsed_tags, ["Rome", "Travel"])
        self.assertTrue(r.truncated)
        self.assertEqual(r.user, "someone")
        self.assertIs(r.raw, TWEET)

    def test_from_payload_standard_only(self):
        r = Record.from_payload({"text": "hello #World", "entities": {"hashtags": [{"text": "World"}]}})
        self.assertEqual(r.body, "hello #World")
        self.assertEqual(r.preparsed_tags, ["World"])
        self.assertIsNone(r.truncated)

    def test_from_payload_without_entities_has_no_preparsed_tags(self):
        r = Record.from_payload({"text": "plain #tag"})
        self.assertIsNone(r.preparsed_tags)

    def test_from_payload_rejects_non_dict(self):
        with self.assertRaises(TypeError):
            Record.from_payload("not a tweet")


if __name__ == "__main__":
    unittest.main()
