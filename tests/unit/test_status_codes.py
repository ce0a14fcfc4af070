"""
Unit tests for status codes and classifications.
"""

from statichttpd.http.status_codes import HTTPStatus, Classification


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        """Test the reason phrases."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.BAD_REQUEST.phrase == "Bad Request"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"

    def test_int_comparison(self):
        """Test that statuses compare as ints."""
        assert HTTPStatus.OK == 200
        assert HTTPStatus.NOT_FOUND.is_error
        assert not HTTPStatus.OK.is_error


class TestClassification:
    """Tests for the classification table."""

    def test_status_mapping(self):
        """Test that each classification carries its status."""
        assert Classification.OK.status == HTTPStatus.OK
        assert Classification.BAD_REQUEST.status == HTTPStatus.BAD_REQUEST
        assert Classification.NOT_FOUND.status == HTTPStatus.NOT_FOUND

    def test_error_pages(self):
        """Test that only the error classifications name a fallback page."""
        assert Classification.OK.error_page_setting is None
        assert Classification.BAD_REQUEST.error_page_setting == "bad_request_page"
        assert Classification.NOT_FOUND.error_page_setting == "not_found_page"

    def test_exactly_three_classifications(self):
        """Test that there are exactly three outcomes."""
        assert len(list(Classification)) == 3

    def test_is_ok(self):
        """Test the is_ok shortcut."""
        assert Classification.OK.is_ok
        assert not Classification.NOT_FOUND.is_ok
