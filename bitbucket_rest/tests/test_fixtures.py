import pytest

from bitbucket_rest.tests.helpers import read_fixture


class TestReadFixture:
    def test_reads_existing_fixture(self):
        assert '"buildNumber"' in read_fixture("application_properties.json")

    def test_missing_fixture_names_the_file(self):
        with pytest.raises(FileNotFoundError, match="nope.json"):
            read_fixture("nope.json")
