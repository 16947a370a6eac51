from __future__ import annotations

import pytest

from driftive.notification.metadata import METADATA_END, METADATA_START, decode_metadata, encode_metadata


def test_encode_wire_format() -> None:
    assert encode_metadata("infra/a", "drift") == (
        '<!--PROJECT_JSON_START--><!--{"project":{"dir":"infra/a"},"kind":"drift"}--><!--PROJECT_JSON_END-->'
    )


def test_decode_block_followed_by_markdown() -> None:
    body = encode_metadata("gcp/app1", "error") + "\n## Plan error\n\n<details><!-- a comment --></details>"
    metadata = decode_metadata(body)
    assert metadata.project_dir == "gcp/app1"
    assert metadata.kind == "error"


def test_decode_block_with_whitespace_in_json() -> None:
    body = f'{METADATA_START}<!--{{"project": {{"dir": "a/b"}}, "kind": "drift"}}-->{METADATA_END}'
    assert decode_metadata(body).project_dir == "a/b"


@pytest.mark.parametrize("body", [
    None,
    "",
    "A human-written issue about drift",
    f"{METADATA_START}<!--{{not json-->{METADATA_END}",
    f'{METADATA_START}<!--{{"project":{{"dir":"a"}}}}-->{METADATA_END}',
    f'{METADATA_START}<!--{{"project":"a","kind":"drift"}}-->{METADATA_END}',
    f'{METADATA_START}<!--{{"project":{{"dir":"a"}},"kind":"other"}}-->{METADATA_END}',
    f'{METADATA_START}<!--{{"project":{{"dir":"a"}},"kind":"drift"}}-->',
    '<!--SUMMARY_JSON_START--><!--{"drifted":[]}--><!--SUMMARY_JSON_END-->',
])
def test_decode_ignores_missing_or_malformed_blocks(body) -> None:
    assert decode_metadata(body) is None
