"""Shared type definitions for quill."""

from typing import Literal

# Entry identifier: the source filename including its extension
type EntryName = str

# Classified filesystem change
type ChangeKind = Literal["created", "modified", "removed"]

# Template name inside a theme snapshot
type TemplateName = str
