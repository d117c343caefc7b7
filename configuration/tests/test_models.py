from django.test import TestCase

from configuration.models import Configuration


class TestConfiguration(TestCase):
    def test_str(self):
        config = Configuration.objects.create(
            key="test-key", value="Test value", data_type=Configuration.DataType.TEXT
        )
        self.assertEqual(str(config), "test-key")

    def test_text(self):
        config = Configuration.objects.create(
            key="test-key",
            value='{"key" : "value"}',
            data_type=Configuration.DataType.TEXT,
        )
        self.assertEqual(config.get_value(), '{"key" : "value"}')

    def test_boolean(self):
        for value, expected in (
            ("True", True),
            ("TrUe", True),
            (" yes ", True),
            ("1", True),
            ("", False),
            ("false", False),
            ("Test value", False),
        ):
            with self.subTest(value=value):
                config = Configuration(
                    key="test-key",
                    value=value,
                    data_type=Configuration.DataType.BOOLEAN,
                )
                self.assertEqual(config.get_value(), expected)

    def test_ingest_toggle_is_populated_by_migration(self):
        config = Configuration.objects.get(key="retire_superseded_online_copy")
        self.assertEqual(config.data_type, Configuration.DataType.BOOLEAN)
        self.assertIs(config.get_value(), True)
