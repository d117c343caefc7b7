import functools

VERSION = (0, 3, 0)


def get_version():
    return ".".join(map(str, VERSION))


@functools.lru_cache(maxsize=None)
def get_longterm_version():
    # Release name reported to Sentry
    return get_version()
