"""Tests for ffpipe package."""


def test_package_imports():
    """Test that the package can be imported successfully."""
    import ffpipe

    assert ffpipe is not None


def test_package_version():
    """Test that the package has a version string."""
    from ffpipe import __version__

    assert __version__ == "0.1.0"


def test_public_names_exist():
    """Every name in __all__ is importable from the package."""
    import ffpipe

    for name in ffpipe.__all__:
        assert hasattr(ffpipe, name), name
