"""
Target labels.

A label names a target in the workspace as ``//package/path:name``. The short
form ``//package/path`` means ``//package/path:path``.
"""

import posixpath
import re
from dataclasses import dataclass
from typing import Optional


class LabelError(Exception):
    """Raised when a label string cannot be parsed."""
    pass


_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_@.+=,~\-/]+$")


@dataclass(frozen=True, order=True)
class Label:
    """A parsed ``//package:name`` reference."""

    package: str
    name: str

    @staticmethod
    def parse(text: str, relative_to: Optional["Label"] = None) -> "Label":
        """Parse a label string.

        Args:
            text: Label text (``//pkg:name``, ``//pkg`` or ``:name``)
            relative_to: Label whose package resolves ``:name`` references

        Returns:
            Parsed Label

        Raises:
            LabelError: If the text is not a valid label
        """
        text = text.strip()
        if text.startswith(":"):
            if relative_to is None:
                raise LabelError(f"relative label '{text}' needs a package")
            package, name = relative_to.package, text[1:]
        elif text.startswith("//"):
            body = text[2:]
            if ":" in body:
                package, name = body.split(":", 1)
            else:
                package, name = body, posixpath.basename(body)
        else:
            raise LabelError(f"invalid label '{text}': must start with '//' or ':'")

        if not name or not _NAME_PATTERN.match(name):
            raise LabelError(f"invalid target name in label '{text}'")
        if package.startswith("/") or package.endswith("/") or "//" in package:
            raise LabelError(f"invalid package name in label '{text}'")
        return Label(package=package, name=name)

    def __str__(self) -> str:
        return f"//{self.package}:{self.name}"

    def package_relative(self, path: str) -> str:
        """Return a workspace-relative path for a file declared in this package."""
        if not self.package:
            return posixpath.normpath(path)
        return posixpath.normpath(posixpath.join(self.package, path))

    def file_label(self, path: str) -> str:
        """Render the label of a source file in this package (``//x:cc.cc``)."""
        return f"//{self.package}:{path}"
