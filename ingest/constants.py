#: Indexing defaults used when neither the request nor bag-info.txt names a value
DEFAULT_IMAGE_FILEGRP = "OCR-D-IMG"
DEFAULT_FULLTEXT_FILEGRP = "OCR-D-GT-SEG-LINE"
DEFAULT_FULLTEXT_FTYPE = "PAGEXML_1"

#: Fulltext formats the search indexer is able to read
POSSIBLE_FULLTEXT_FTYPES = ("PAGEXML_1", "ALTO_1", "TEI_2")

# bag-info.txt keys
BAGINFO_KEY_IDENTIFIER = "Ocrd-Identifier"
BAGINFO_KEY_METS = "Ocrd-Mets"
BAGINFO_KEY_IMAGE_FILEGRP = "Olahd-Search-Image-Filegrp"
BAGINFO_KEY_FULLTEXT_FILEGRP = "Olahd-Search-Fulltext-Filegrp"
BAGINFO_KEY_FTYPE = "Olahd-Search-Fulltext-Ftype"
BAGINFO_KEY_IS_GT = "Olahd-GT"

#: Payload directory of a bag and the default location of the METS file in it
PAYLOAD_DIR = "data"
DEFAULT_METS_PATH = "mets.xml"

# Keys written to the identifier service
PID_KEY_PREVIOUS_VERSION = "PREVIOUS-VERSION"
PID_KEY_NEXT_VERSION = "NEXT-VERSION"
PID_KEY_URL = "URL"

# Configuration keys (see the configuration app)
CONFIG_RETIRE_SUPERSEDED_ONLINE_COPY = "retire_superseded_online_copy"
