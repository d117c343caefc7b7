import os
import shutil
from unittest import mock

from django.core.cache import caches
from django.test import TestCase, override_settings

from ingest import constants
from ingest.exceptions import (
    IdentifierServiceError,
    PackageInvalid,
    PreviousVersionNotFound,
)
from ingest.metadata import ImportParameters, IndexingConfig, PackageMetadata
from ingest.models import ArchiveVersion, TrackingRecord
from ingest.submission import accept_import, build_export_url, submit_import

from . import fakes
from .utils import create_archive_version, create_package, create_tracking_record


class BuildExportUrlTests(TestCase):
    @override_settings(INGEST_PUBLIC_BASE_URL="https://archive.example.org/api/")
    def test_build_export_url(self):
        self.assertEqual(
            build_export_url("21.T11998/0000-001"),
            "https://archive.example.org/api/export?id=21.T11998%2F0000-001",
        )


@mock.patch("ingest.submission.import_package_task.delay", autospec=True)
class SubmitImportTests(TestCase):
    def test_submit_import(self, delay_mock):
        tracking_record = create_tracking_record()
        metadata = PackageMetadata([("Ocrd-Identifier", "pkg")])

        submit_import(
            tracking_record,
            "/tmp/package",
            "21.T11998/1",
            metadata,
            IndexingConfig(),
            previous_identifier="P",
            workspace="/tmp",
        )

        delay_mock.assert_called_once_with(
            tracking_record.pk,
            "/tmp/package",
            "21.T11998/1",
            [["Ocrd-Identifier", "pkg"]],
            {
                "image_file_group": "OCR-D-IMG",
                "fulltext_file_group": "OCR-D-GT-SEG-LINE",
                "fulltext_format_type": "PAGEXML_1",
                "ground_truth": None,
            },
            previous_identifier="P",
            export_url=build_export_url("21.T11998/1"),
            workspace="/tmp",
        )


class AcceptImportTests(TestCase):
    def setUp(self):
        fakes.reset_all()
        caches["configuration_cache"].clear()

    def make_package(self, **kwargs):
        root = create_package(**kwargs)
        self.addCleanup(shutil.rmtree, root, ignore_errors=True)
        return root

    def test_accept_and_import(self):
        package_path = self.make_package()
        fakes.FakeIdentifierService.next_identifier = "21.T11998/ACCEPTED"

        tracking_record = accept_import(
            "tester", package_path, workspace=package_path
        )

        # The saga ran eagerly
        tracking_record.refresh_from_db()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.SUCCESS)
        self.assertEqual(tracking_record.identifier, "21.T11998/ACCEPTED")
        self.assertEqual(tracking_record.owner, "tester")

        minted = fakes.FakeIdentifierService.calls_to("mint")
        self.assertEqual(len(minted), 1)
        self.assertIn(("Ocrd-Identifier", "test-package"), minted[0][0])

        version = ArchiveVersion.objects.get()
        self.assertEqual(version.identifier, "21.T11998/ACCEPTED")
        self.assertIsNone(version.previous_version)
        self.assertEqual(
            fakes.FakeIndexerService.calls_to("notify"),
            [
                (
                    "21.T11998/ACCEPTED",
                    "OCR-D-IMG",
                    "OCR-D-GT-SEG-LINE",
                    "PAGEXML_1",
                    None,
                )
            ],
        )
        self.assertFalse(os.path.exists(package_path))

    def test_parameters_override_metadata(self):
        package_path = self.make_package(
            bag_info={
                "Ocrd-Identifier": "pkg",
                constants.BAGINFO_KEY_IMAGE_FILEGRP: "OCR-D-GT-SEG-LINE",
            },
            file_groups=("MAX", "OCR-D-GT-SEG-LINE"),
        )
        create_archive_version(identifier="P")
        params = ImportParameters.from_form(
            {"prev": "P", "image-filegrp": "MAX", "gt": "false"}
        )

        tracking_record = accept_import("tester", package_path, params)

        tracking_record.refresh_from_db()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.SUCCESS)
        identifier = tracking_record.identifier
        self.assertEqual(
            fakes.FakeIndexerService.calls_to("notify"),
            [(identifier, "MAX", "OCR-D-GT-SEG-LINE", "PAGEXML_1", False)],
        )
        self.assertEqual(
            ArchiveVersion.objects.get(identifier=identifier).previous_version_id, "P"
        )
        self.assertIsNone(ArchiveVersion.objects.get(identifier="P").online_copy_id)
        # Without a workspace the package is left in place
        self.assertTrue(os.path.exists(package_path))

    def test_invalid_package(self):
        package_path = self.make_package(bag_info={"Contact-Name": "Someone"})

        with self.assertRaises(PackageInvalid):
            accept_import("tester", package_path, workspace=package_path)

        tracking_record = TrackingRecord.objects.get()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.FAILED)
        self.assertEqual(
            tracking_record.message,
            "Not a valid Ocrd-Zip: bag-info.txt must contain key: 'Ocrd-Identifier'",
        )
        self.assertEqual(fakes.FakeIdentifierService.calls, [])
        self.assertEqual(fakes.FakeStorageService.calls, [])
        self.assertFalse(os.path.exists(package_path))

    def test_unknown_previous_version(self):
        package_path = self.make_package()

        with self.assertRaises(PreviousVersionNotFound):
            accept_import(
                "tester",
                package_path,
                ImportParameters(previous_identifier="UNKNOWN"),
            )

        tracking_record = TrackingRecord.objects.get()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.FAILED)
        self.assertEqual(
            tracking_record.message, "Previous version 'UNKNOWN' does not exist"
        )
        self.assertEqual(fakes.FakeIdentifierService.calls, [])

    def test_minting_exhausts_retries(self):
        package_path = self.make_package()
        fakes.FakeIdentifierService.fail(
            "mint", IdentifierServiceError("PID service unavailable")
        )

        with self.assertRaises(IdentifierServiceError):
            accept_import("tester", package_path)

        tracking_record = TrackingRecord.objects.get()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.FAILED)
        self.assertEqual(tracking_record.message, "PID service unavailable")
        self.assertEqual(tracking_record.identifier, "")
        # The first attempt and three retries, and storage was never touched
        self.assertEqual(len(fakes.FakeIdentifierService.calls_to("mint")), 4)
        self.assertEqual(fakes.FakeStorageService.calls, [])
        self.assertFalse(ArchiveVersion.objects.exists())

    def test_minting_recovers(self):
        package_path = self.make_package()
        fakes.FakeIdentifierService.fail(
            "mint", IdentifierServiceError("Hiccup"), times=2
        )

        tracking_record = accept_import("tester", package_path)

        tracking_record.refresh_from_db()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.SUCCESS)
        self.assertEqual(len(fakes.FakeIdentifierService.calls_to("mint")), 3)

    def test_blank_identifier(self):
        package_path = self.make_package()
        fakes.FakeIdentifierService.next_identifier = ""

        with self.assertRaisesMessage(IdentifierServiceError, "No PID received"):
            accept_import("tester", package_path)

        tracking_record = TrackingRecord.objects.get()
        self.assertEqual(tracking_record.status, TrackingRecord.Status.FAILED)
        self.assertEqual(tracking_record.message, "No PID received")
        self.assertEqual(fakes.FakeStorageService.calls, [])
