"""Read crate manifests and lock files, write package.json, copy README and license files, and run npm."""

__version__ = "0.1.0"