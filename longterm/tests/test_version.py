import os
import re

from django.test import SimpleTestCase

import longterm
from longterm.version import VERSION, get_version

VERSION_FILE = os.path.join(os.path.dirname(longterm.__file__), "version.py")


class VersionTests(SimpleTestCase):
    def test_get_version(self):
        self.assertEqual(get_version(), ".".join(map(str, VERSION)))

    def test_version_can_be_read_from_source(self):
        # setup.py reads the tuple this way so building does not import longterm
        with open(VERSION_FILE, "r") as f:
            match = re.search(r"^VERSION = \((\d+), (\d+), (\d+)\)", f.read(), re.M)
        self.assertIsNotNone(match)
        self.assertEqual(".".join(match.groups()), get_version())
