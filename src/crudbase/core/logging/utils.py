from importlib import metadata as importlib_metadata

DISTRIBUTION_NAME = "crudbase"


def get_project_name() -> str:
    return DISTRIBUTION_NAME


def get_project_version(default: str = "unknown") -> str:
    """
    Return the installed version of the distribution, or `default` when it is not
    installed (e.g. running from a source checkout).
    """
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        return default
