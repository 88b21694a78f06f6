"""
Python 3.10 import compatibility tests.

These tests verify that every primabridge module imports without a
native library present and without Python 3.11+ features.
"""


class TestImports:
    """Test that all primabridge modules import successfully."""

    def test_import_package(self):
        """Import the package without loading libprimac."""
        import primabridge

        assert primabridge.__version__

    def test_import_public_api(self):
        """Import the public entry points."""
        from primabridge import Options, Problem, Result, build_options, build_problem, minimize

        assert callable(build_problem)
        assert callable(build_options)
        assert callable(minimize)
        assert Problem is not None
        assert Options is not None
        assert Result is not None

    def test_descriptor_aliases(self):
        """The *_descriptor names are the same builders."""
        import primabridge

        assert primabridge.build_problem_descriptor is primabridge.build_problem
        assert primabridge.build_options_descriptor is primabridge.build_options

    def test_import_internal_modules(self):
        """Import internal modules directly."""
        from primabridge import _bindings, _logging, _native, callbacks, views

        assert _bindings.LIBRARY_ENV == "PRIMABRIDGE_LIBRARY"
        assert _logging is not None
        assert _native is not None
        assert callbacks is not None
        assert views is not None

    def test_all_is_importable(self):
        """Every name in __all__ exists on the package."""
        import primabridge

        for name in primabridge.__all__:
            assert hasattr(primabridge, name), name
