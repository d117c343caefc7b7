from .settings_template import *  # NOQA ignore=F405
