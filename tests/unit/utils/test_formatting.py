"""Unit tests for formatting utilities."""

import pytest
from reclaim.utils.formatting import format_size


class TestFormatSize:
    """Tests for format_size function."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (None, "0 B"),
            (0, "0 B"),
            (512, "512 B"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
            (2 * 1024**4, "2.0 TB"),
        ],
    )
    def test_format_size(self, size: int | None, expected: str) -> None:
        """Sizes are rendered in the largest fitting unit."""
        assert format_size(size) == expected
