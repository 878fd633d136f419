import io
import json
import logging

from logconfig import MAX_SCRUB_DEPTH, configure_logging, mask_phone, scrub


def test_scrub_masks_pins_and_phones_recursively():
    data = {"user": {"name": "David", "pin": "3333", "phone": "08012345674"}, "items": [{"token": "t"}]}
    scrubbed = scrub(data)

    assert scrubbed["user"]["pin"] == "***MASKED***"
    assert scrubbed["user"]["phone"] == "080********"
    assert scrubbed["user"]["name"] == "David"
    assert scrubbed["items"][0]["token"] == "***MASKED***"


def test_scrub_is_depth_bounded():
    nested = current = {}
    for _ in range(MAX_SCRUB_DEPTH + 5):
        current["next"] = {}
        current = current["next"]

    flattened = json.dumps(scrub(nested))
    assert "[MAX_DEPTH_EXCEEDED]" in flattened


def test_mask_short_phone():
    assert mask_phone("123") == "****"


def test_configured_logger_emits_masked_json():
    stream = io.StringIO()
    handler = configure_logging("DEBUG", stream=stream, logger_name="dispatch-test")
    try:
        logging.getLogger("dispatch-test").info("registered", extra={"metadata": {"pin": "1234", "phone": "08012345674"}})
    finally:
        logging.getLogger("dispatch-test").removeHandler(handler)

    record = json.loads(stream.getvalue().strip())
    assert record["level"] == "INFO"
    assert record["logger"] == "dispatch-test"
    assert record["message"] == "registered"
    assert record["metadata"] == {"pin": "***MASKED***", "phone": "080********"}
