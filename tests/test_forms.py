import unittest
from unittest.mock import Mock

from dashboard.forms import (
    DraftValidationError,
    EndpointDraft,
    MAX_DURATION_S,
    confirm_and_delete,
    format_int_list,
    new_draft,
    normalize_content_match,
    parse_int_list,
    to_draft,
    to_record,
)
from dashboard.kv_editor import KeyValueRows
from dashboard.models import ContentMatch, EndpointCheck

SECOND = 1_000_000_000


def make_record(**overrides) -> EndpointCheck:
    data = {
        "id": "api-health",
        "name": "API",
        "url": "https://api.example.com/health",
        "method": "GET",
        "interval": 60 * SECOND,
        "timeout": 10 * SECOND,
        "headers": {"Authorization": "Bearer x"},
        "validation": {
            "status_codes": [200, 204],
            "content_match": {"type": "exact", "pattern": "ok"},
        },
        "ssl": {"expiration_alert_days": [30, 7, 1]},
        "tags": {"env": "prod"},
    }
    data.update(overrides)
    return EndpointCheck.model_validate(data)


class ParseIntListTests(unittest.TestCase):
    def test_non_numeric_tokens_are_dropped(self) -> None:
        self.assertEqual(parse_int_list("200, abc, 201"), [200, 201])

    def test_formatting_noise(self) -> None:
        cases = [
            ("", []),
            (None, []),
            (" 30 ,7,, 1 ", [30, 7, 1]),
            ("201x, 2.5", [201, 2]),
            (",,,", []),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                self.assertEqual(parse_int_list(text), expected)

    def test_format_int_list(self) -> None:
        self.assertEqual(format_int_list([30, 7, 1]), "30, 7, 1")
        self.assertEqual(format_int_list([]), "")


class DraftConversionTests(unittest.TestCase):
    def test_to_draft_converts_durations_to_seconds(self) -> None:
        draft = to_draft(make_record())

        self.assertEqual(draft.id, "api-health")
        self.assertEqual(draft.interval_s, 60)
        self.assertEqual(draft.timeout_s, 10)
        self.assertEqual(draft.headers.to_mapping(), {"Authorization": "Bearer x"})
        self.assertEqual(draft.tags.to_mapping(), {"env": "prod"})
        self.assertEqual(draft.status_codes, [200, 204])
        self.assertEqual(draft.alert_days, [30, 7, 1])

    def test_integer_second_durations_round_trip(self) -> None:
        for seconds in (1, 5, 30, 60, 3600, 86400):
            with self.subTest(seconds=seconds):
                record = make_record(interval=seconds * SECOND, timeout=seconds * SECOND)
                back = to_record(to_draft(record))
                self.assertEqual(back.interval, record.interval)
                self.assertEqual(back.timeout, record.timeout)

    def test_fractional_seconds_survive(self) -> None:
        record = make_record(interval=1_500_000_000)

        draft = to_draft(record)

        self.assertEqual(draft.interval_s, 1.5)
        self.assertEqual(to_record(draft).interval, 1_500_000_000)

    def test_missing_content_match_becomes_empty_object(self) -> None:
        record = make_record(validation={"status_codes": [200]})

        draft = to_draft(record)

        self.assertEqual(draft.content_match, ContentMatch(type="", pattern=""))

    def test_missing_nested_objects_are_tolerated(self) -> None:
        record = EndpointCheck.model_validate(
            {"id": "x", "name": "x", "url": "http://x", "validation": None, "ssl": None,
             "headers": None, "tags": None}
        )

        draft = to_draft(record)

        self.assertEqual(draft.status_codes, [])
        self.assertEqual(draft.alert_days, [])
        self.assertEqual(draft.headers.rows, ())

    def test_to_record_keeps_id(self) -> None:
        self.assertEqual(to_record(to_draft(make_record())).id, "api-health")

    def test_new_draft_has_no_id(self) -> None:
        draft = new_draft()
        draft.name = "New"
        draft.url = "https://new.example.com"

        record = to_record(draft)

        self.assertIsNone(record.id)
        self.assertNotIn("id", record.to_payload())
        self.assertEqual(record.interval, 60 * SECOND)
        self.assertEqual(record.timeout, 10 * SECOND)
        self.assertEqual(record.validation.status_codes, [200])
        self.assertEqual(record.ssl.expiration_alert_days, [30, 7, 1])


class ContentMatchNormalizationTests(unittest.TestCase):
    def test_empty_pattern_drops_content_match(self) -> None:
        draft = to_draft(make_record())
        draft.content_match = ContentMatch(type="regex", pattern="")

        record = to_record(draft)

        self.assertIsNone(record.validation.content_match)
        self.assertNotIn("content_match", record.to_payload()["validation"])

    def test_pattern_without_type_is_dropped(self) -> None:
        self.assertIsNone(normalize_content_match(ContentMatch(type="", pattern="ok")))

    def test_complete_match_is_kept(self) -> None:
        cm = normalize_content_match(ContentMatch(type="regex", pattern="^ok$"))

        self.assertEqual(cm, ContentMatch(type="regex", pattern="^ok$"))
        self.assertIsNone(normalize_content_match(None))


class DraftValidationTests(unittest.TestCase):
    def _fields(self, draft: EndpointDraft) -> set[str]:
        with self.assertRaises(DraftValidationError) as ctx:
            to_record(draft)
        return {e.field for e in ctx.exception.errors}

    def test_name_and_url_are_required(self) -> None:
        self.assertEqual(self._fields(EndpointDraft(name=" ", url="")), {"name", "url"})

    def test_interval_must_be_at_least_one_second(self) -> None:
        for interval in (0, 0.5, -3, None):
            with self.subTest(interval=interval):
                draft = EndpointDraft(name="a", url="http://a", interval_s=interval)
                self.assertEqual(self._fields(draft), {"interval_s"})

    def test_non_finite_and_oversized_durations_are_rejected(self) -> None:
        for value in (float("nan"), float("inf"), float("-inf"), 1e300, 10**12):
            with self.subTest(value=value):
                interval = EndpointDraft(name="a", url="http://a", interval_s=value)
                timeout = EndpointDraft(name="a", url="http://a", timeout_s=value)
                self.assertEqual(self._fields(interval), {"interval_s"})
                self.assertEqual(self._fields(timeout), {"timeout_s"})

    def test_largest_duration_is_accepted(self) -> None:
        draft = EndpointDraft(name="a", url="http://a", interval_s=MAX_DURATION_S)

        self.assertEqual(to_record(draft).interval, MAX_DURATION_S * SECOND)

    def test_unset_timeout_uses_default(self) -> None:
        draft = EndpointDraft(name="a", url="http://a", timeout_s=None)

        self.assertEqual(to_record(draft).timeout, 10 * SECOND)

    def test_unknown_method(self) -> None:
        draft = EndpointDraft(name="a", url="http://a", method="FETCH")

        self.assertEqual(self._fields(draft), {"method"})

    def test_duplicate_header_rows_are_reported(self) -> None:
        headers = KeyValueRows.from_pairs([("Accept", "a"), ("Accept", "b")])
        draft = EndpointDraft(name="a", url="http://a", headers=headers)

        with self.assertRaises(DraftValidationError) as ctx:
            to_record(draft)

        self.assertEqual(ctx.exception.errors[0].field, "headers")
        self.assertIn("Accept", ctx.exception.errors[0].message)

    def test_blank_tag_rows_are_dropped(self) -> None:
        tags = KeyValueRows().add().add().add("team", "ops")
        draft = EndpointDraft(name="a", url="http://a", tags=tags)

        self.assertEqual(to_record(draft).tags, {"team": "ops"})


class DeleteConfirmationTests(unittest.TestCase):
    def test_declined_confirmation_is_a_no_op(self) -> None:
        delete = Mock()

        self.assertFalse(confirm_and_delete(delete, "api-health", lambda: False))
        delete.assert_not_called()

    def test_confirmed_delete_runs_once(self) -> None:
        delete = Mock()

        self.assertTrue(confirm_and_delete(delete, "api-health", lambda: True))
        delete.assert_called_once_with("api-health")


if __name__ == "__main__":
    unittest.main()
