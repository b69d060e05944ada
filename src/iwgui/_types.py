"""Shared type definitions for iwgui."""

from typing import Literal, NewType

# Opaque widget identity, stable across frames for the same logical widget
Handle = NewType("Handle", str)

# Session identifier shared by the two channels of one browser tab
type SessionID = str

# Channel direction as announced in the Welcome handshake
type Direction = Literal["ToBrowser", "ToServer"]

# Node kind tag as it appears on the wire (e.g. "Button", "StackLayout")
type NodeKind = str
