from django.test import SimpleTestCase

from ingest import constants
from ingest.metadata import (
    ImportParameters,
    IndexingConfig,
    PackageMetadata,
    mets_path,
    parse_bool,
    resolve_indexing_config,
)


class PackageMetadataTests(SimpleTestCase):
    def test_first_occurrence_wins(self):
        metadata = PackageMetadata([("a", "1"), ("b", "2"), ("a", "3")])
        self.assertEqual(metadata.get("a"), "1")
        self.assertEqual(list(metadata), [("a", "1"), ("b", "2"), ("a", "3")])
        self.assertEqual(len(metadata), 3)
        self.assertIn("b", metadata)
        self.assertNotIn("c", metadata)
        self.assertIsNone(metadata.get("c"))

    def test_get_nonblank_skips_blank_values(self):
        metadata = PackageMetadata([("a", "  "), ("a", "value")])
        self.assertEqual(metadata.get("a"), "  ")
        self.assertEqual(metadata.get_nonblank("a"), "value")
        self.assertIsNone(metadata.get_nonblank("b"))

    def test_from_bag_info_flattens_repeated_keys(self):
        metadata = PackageMetadata.from_bag_info(
            {"Ocrd-Identifier": "id-1", "Contact-Name": ["Alice", "Bob"]}
        )
        self.assertEqual(
            metadata.to_list(),
            [
                ["Ocrd-Identifier", "id-1"],
                ["Contact-Name", "Alice"],
                ["Contact-Name", "Bob"],
            ],
        )

    def test_to_list_round_trip_through_broker_format(self):
        metadata = PackageMetadata([("a", "1"), ("a", "2")])
        self.assertEqual(PackageMetadata(metadata.to_list()), metadata)


class ParseBoolTests(SimpleTestCase):
    def test_parse_bool(self):
        self.assertIs(parse_bool("TRUE"), True)
        self.assertIs(parse_bool(" false "), False)
        self.assertIs(parse_bool(True), True)
        self.assertIsNone(parse_bool("yes"))
        self.assertIsNone(parse_bool(""))
        self.assertIsNone(parse_bool(None))


class ImportParametersTests(SimpleTestCase):
    def test_aliases(self):
        params = ImportParameters.from_form(
            {
                "prev": "21.T11998/PREV",
                "isGt": "True",
                "imagefilegrp": "MAX",
                "Fulltext-Filegrp": "OCR-D-OCR",
                "fulltextftype": "ALTO_1",
                "unrelated": "ignored",
            }
        )
        self.assertEqual(
            params,
            ImportParameters(
                previous_identifier="21.T11998/PREV",
                image_file_group="MAX",
                fulltext_file_group="OCR-D-OCR",
                fulltext_format_type="ALTO_1",
                ground_truth=True,
            ),
        )

    def test_image_file_group_does_not_set_fulltext_group(self):
        params = ImportParameters.from_form({"image-filegrp": "MAX"})
        self.assertEqual(params.image_file_group, "MAX")
        self.assertIsNone(params.fulltext_file_group)

    def test_blank_values_are_not_given(self):
        params = ImportParameters.from_form({"prev": "  ", "gt": ""})
        self.assertEqual(params, ImportParameters())

    def test_invalid_ground_truth(self):
        with self.assertRaisesMessage(
            ValueError, "'gt' was given with value 'maybe' but must be either"
        ):
            ImportParameters.from_form({"gt": "maybe"})


class ResolveIndexingConfigTests(SimpleTestCase):
    def test_defaults(self):
        self.assertEqual(
            resolve_indexing_config(PackageMetadata()),
            IndexingConfig(
                image_file_group="OCR-D-IMG",
                fulltext_file_group="OCR-D-GT-SEG-LINE",
                fulltext_format_type="PAGEXML_1",
                ground_truth=None,
            ),
        )

    def test_each_field_resolved_independently(self):
        metadata = PackageMetadata(
            [
                (constants.BAGINFO_KEY_IMAGE_FILEGRP, "META-IMG"),
                (constants.BAGINFO_KEY_FULLTEXT_FILEGRP, "META-FULLTEXT"),
                (constants.BAGINFO_KEY_FTYPE, " "),
            ]
        )
        params = ImportParameters(image_file_group="PARAM-IMG", ground_truth=False)

        config = resolve_indexing_config(metadata, params)

        self.assertEqual(config.image_file_group, "PARAM-IMG")
        self.assertEqual(config.fulltext_file_group, "META-FULLTEXT")
        self.assertEqual(config.fulltext_format_type, "PAGEXML_1")
        self.assertIs(config.ground_truth, False)

    def test_ground_truth_from_metadata(self):
        metadata = PackageMetadata([(constants.BAGINFO_KEY_IS_GT, "true")])
        self.assertIs(resolve_indexing_config(metadata).ground_truth, True)

    def test_dict_form(self):
        config = IndexingConfig(image_file_group="MAX", ground_truth=True)
        self.assertEqual(IndexingConfig.from_dict(config.to_dict()), config)


class MetsPathTests(SimpleTestCase):
    def test_default(self):
        self.assertEqual(mets_path({}), "data/mets.xml")
        self.assertEqual(mets_path({"Ocrd-Mets": " "}), "data/mets.xml")

    def test_declared(self):
        self.assertEqual(mets_path({"Ocrd-Mets": "sub/my.xml"}), "data/sub/my.xml")
        self.assertEqual(
            mets_path(PackageMetadata([("Ocrd-Mets", "/other.xml")])),
            "data/other.xml",
        )
