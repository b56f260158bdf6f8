"""
Custom setup.py to exclude pygame-dependent files from the wheel.

viewer.py, controls.py and __main__.py require pygame, which is an
optional extra. They are only needed for local interactive use; running
them from a source checkout is enough.
"""

from setuptools import setup
from setuptools.command.build_py import build_py as _build_py


_EXCLUDE_MODULES = {"viewer", "controls", "__main__"}


class BuildPy(_build_py):
    """build_py that leaves the pygame-dependent modules out."""

    def find_package_modules(self, package, package_dir):
        modules = super().find_package_modules(package, package_dir)
        return [
            (pkg, mod, path)
            for (pkg, mod, path) in modules
            if mod not in _EXCLUDE_MODULES
        ]


setup(
    cmdclass={"build_py": BuildPy},
)
