import unittest
from datetime import datetime, timezone

from dashboard.models import CheckResult, EndpointCheck, MonitorConfig


class CheckResultTests(unittest.TestCase):
    def test_nanosecond_timestamps_are_truncated(self) -> None:
        result = CheckResult.model_validate(
            {
                "endpoint_id": "api",
                "timestamp": "2026-02-23T14:11:45.123456789Z",
                "duration_ns": 5,
                "status_code": 200,
                "success": True,
                "cert_expiry": "2026-05-01T00:00:00.000000001Z",
            }
        )

        self.assertEqual(
            result.timestamp, datetime(2026, 2, 23, 14, 11, 45, 123456, tzinfo=timezone.utc)
        )
        self.assertEqual(result.cert_expiry, datetime(2026, 5, 1, tzinfo=timezone.utc))
        self.assertIsNone(result.error)

    def test_zero_cert_expiry_is_absent(self) -> None:
        result = CheckResult.model_validate(
            {
                "timestamp": "2026-02-23T14:11:45Z",
                "success": True,
                "cert_expiry": "0001-01-01T00:00:00Z",
            }
        )

        self.assertEqual(result.endpoint_id, "")
        self.assertIsNone(result.cert_expiry)

    def test_negative_duration_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            CheckResult(
                endpoint_id="api",
                timestamp=datetime(2026, 2, 23, tzinfo=timezone.utc),
                duration_ns=-1,
            )


class EndpointCheckTests(unittest.TestCase):
    def test_absent_nested_objects_default(self) -> None:
        ep = EndpointCheck.model_validate({"id": "a", "name": "A", "url": "http://a"})

        self.assertEqual(ep.headers, {})
        self.assertEqual(ep.tags, {})
        self.assertEqual(ep.validation.status_codes, [])
        self.assertIsNone(ep.validation.content_match)
        self.assertEqual(ep.ssl.expiration_alert_days, [])

    def test_payload_without_id(self) -> None:
        payload = EndpointCheck(name="A", url="http://a").to_payload()

        self.assertNotIn("id", payload)
        self.assertEqual(payload["validation"], {"status_codes": []})


class MonitorConfigTests(unittest.TestCase):
    def test_unknown_sections_survive_round_trip(self) -> None:
        data = {
            "global": {"check_interval": 30_000_000_000, "request_timeout": 10_000_000_000},
            "endpoints": [{"id": "a", "name": "A", "url": "http://a"}],
            "alert_rules": [{"name": "down", "condition": "status == down"}],
        }

        payload = MonitorConfig.model_validate(data).to_payload()

        self.assertEqual(payload["global"]["check_interval"], 30_000_000_000)
        self.assertEqual(payload["alert_rules"], data["alert_rules"])
        self.assertEqual(payload["endpoints"][0]["id"], "a")

    def test_null_endpoints(self) -> None:
        cfg = MonitorConfig.model_validate({"global": None, "endpoints": None})

        self.assertEqual(cfg.endpoints, [])
        self.assertEqual(cfg.global_.check_interval, 0)


if __name__ == "__main__":
    unittest.main()
