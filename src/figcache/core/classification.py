"""Classification of design variables and nodes.

Variables are classified by name and resolved value into a closed set of
token types, color systems and semantic roles. Node classification (mapping
layer names to UI component classes) is supplied from outside through the
NodeClassifier protocol; the default classifier tags nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from .colors import match_daisyui_color


class TokenType(Enum):
    COLOR = "color"
    SPACING = "spacing"
    TYPOGRAPHY = "typography"
    RADIUS = "radius"
    SHADOW = "shadow"
    OPACITY = "opacity"
    SIZING = "sizing"
    BOOLEAN = "boolean"
    STRING = "string"
    UNKNOWN = "unknown"


class ColorSystem(Enum):
    DAISYUI = "daisyui"
    TAILWIND = "tailwind"
    CUSTOM = "custom"
    BRAND = "brand"


class SemanticRole(Enum):
    BACKGROUND = "background"
    FOREGROUND = "foreground"
    BORDER = "border"
    ACCENT = "accent"
    INTERACTIVE = "interactive"
    STATE = "state"
    CONTENT = "content"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class VariableClassification:
    """Classification attached to a design variable.

    ``color_system`` and ``semantic_role`` are only set for color tokens.
    """

    token_type: TokenType = TokenType.UNKNOWN
    color_system: Optional[ColorSystem] = None
    semantic_role: Optional[SemanticRole] = None
    daisyui_name: Optional[str] = None
    daisyui_category: Optional[str] = None
    tailwind_name: Optional[str] = None
    tailwind_shade: Optional[str] = None
    tailwind_class: Optional[str] = None
    css_variable: Optional[str] = None


# Ordered: "-content" variants must be tried before their base color
DAISYUI_NAME_PATTERNS: list[tuple[re.Pattern[str], str, str]] = [
    (re.compile(r"\bprimary[-_]?content\b", re.I), "primary-content", "content"),
    (re.compile(r"\bsecondary[-_]?content\b", re.I), "secondary-content", "content"),
    (re.compile(r"\baccent[-_]?content\b", re.I), "accent-content", "content"),
    (re.compile(r"\bprimary\b", re.I), "primary", "brand"),
    (re.compile(r"\bsecondary\b", re.I), "secondary", "brand"),
    (re.compile(r"\baccent\b", re.I), "accent", "brand"),
    (re.compile(r"\bneutral[-_]?content\b", re.I), "neutral-content", "content"),
    (re.compile(r"\bneutral\b", re.I), "neutral", "base"),
    (re.compile(r"\bbase[-_]?content\b", re.I), "base-content", "content"),
    (re.compile(r"\bbase[-_]?300\b", re.I), "base-300", "base"),
    (re.compile(r"\bbase[-_]?200\b", re.I), "base-200", "base"),
    (re.compile(r"\bbase[-_]?100\b", re.I), "base-100", "base"),
    (re.compile(r"\bsuccess[-_]?content\b", re.I), "success-content", "content"),
    (re.compile(r"\binfo[-_]?content\b", re.I), "info-content", "content"),
    (re.compile(r"\bwarning[-_]?content\b", re.I), "warning-content", "content"),
    (re.compile(r"\berror[-_]?content\b", re.I), "error-content", "content"),
    (re.compile(r"\bsuccess\b", re.I), "success", "state"),
    (re.compile(r"\binfo\b", re.I), "info", "state"),
    (re.compile(r"\bwarning\b", re.I), "warning", "state"),
    (re.compile(r"\berror\b", re.I), "error", "state"),
]

TAILWIND_COLOR_NAMES = (
    "slate", "gray", "zinc", "neutral", "stone", "red", "orange", "amber",
    "yellow", "lime", "green", "emerald", "teal", "cyan", "sky", "blue",
    "indigo", "violet", "purple", "fuchsia", "pink", "rose",
)
TAILWIND_SHADES = ("50", "100", "200", "300", "400", "500", "600", "700", "800", "900", "950")

_FLOAT_TOKEN_PATTERNS: list[tuple[re.Pattern[str], TokenType]] = [
    (re.compile(r"opacity|alpha|transparent", re.I), TokenType.OPACITY),
    (re.compile(r"radius|corner|round", re.I), TokenType.RADIUS),
    (re.compile(r"shadow|blur|spread|elevation", re.I), TokenType.SHADOW),
    (re.compile(r"spacing|gap|padding|margin|space", re.I), TokenType.SPACING),
    (re.compile(r"size|width|height|min|max", re.I), TokenType.SIZING),
    (re.compile(r"font|text|line|letter|tracking", re.I), TokenType.TYPOGRAPHY),
]

_ROLE_PATTERNS: list[tuple[re.Pattern[str], SemanticRole]] = [
    (re.compile(r"background|bg[-_]|surface", re.I), SemanticRole.BACKGROUND),
    (re.compile(r"foreground|fg[-_]|text[-_]color", re.I), SemanticRole.FOREGROUND),
    (re.compile(r"border|stroke|outline", re.I), SemanticRole.BORDER),
    (re.compile(r"hover|active|pressed|focus|disabled", re.I), SemanticRole.INTERACTIVE),
]

_BRAND_RE = re.compile(r"brand|logo|corporate|company", re.I)
_DIGITS_RE = re.compile(r"\d{2,3}")


def detect_daisyui_name(variable_name: str) -> Optional[tuple[str, str]]:
    """Return (daisyui name, category) when the variable name mentions one."""
    for pattern, name, category in DAISYUI_NAME_PATTERNS:
        if pattern.search(variable_name):
            return name, category
    return None


def detect_tailwind_color(variable_name: str) -> Optional[tuple[str, str]]:
    """Return (color name, shade) for names like ``blue-500`` or ``slate 600``.

    A bare color name without any shade digits is treated as shade 500.
    """
    lowered = variable_name.lower()
    for color in TAILWIND_COLOR_NAMES:
        match = re.search(rf"\b{color}[-_\s]?(\d{{2,3}})\b", lowered)
        if match and match.group(1) in TAILWIND_SHADES:
            return color, match.group(1)
        if color in lowered and not _DIGITS_RE.search(lowered):
            if re.search(rf"\b{color}\b", lowered):
                return color, "500"
    return None


def _float_token_type(name: str) -> TokenType:
    for pattern, token_type in _FLOAT_TOKEN_PATTERNS:
        if pattern.search(name):
            return token_type
    return TokenType.SPACING


def _daisyui_role(name: str, category: str) -> SemanticRole:
    if category == "content":
        return SemanticRole.CONTENT
    if category == "state":
        return SemanticRole.STATE
    if category == "base":
        return SemanticRole.FOREGROUND if "content" in name else SemanticRole.BACKGROUND
    return SemanticRole.ACCENT


def _shade_role(shade: str) -> SemanticRole:
    value = int(shade)
    if value <= 200:
        return SemanticRole.BACKGROUND
    if value >= 800:
        return SemanticRole.FOREGROUND
    return SemanticRole.ACCENT


def _name_role(name: str) -> SemanticRole:
    for pattern, role in _ROLE_PATTERNS:
        if pattern.search(name):
            return role
    return SemanticRole.UNKNOWN


def classify_variable(
    name: str,
    resolved_type: str,
    hex_value: Optional[str] = None,
) -> VariableClassification:
    """Classify a variable by its name, resolved type and default color.

    Args:
        name: Variable name, e.g. ``colors/primary``.
        resolved_type: Remote type string (COLOR, FLOAT, STRING, BOOLEAN).
        hex_value: Default-mode color, when the variable is a resolved color.

    Returns:
        VariableClassification for the variable.
    """
    kind = str(resolved_type).upper()
    if kind == "FLOAT":
        return VariableClassification(token_type=_float_token_type(name))
    if kind == "STRING":
        return VariableClassification(token_type=TokenType.STRING)
    if kind == "BOOLEAN":
        return VariableClassification(token_type=TokenType.BOOLEAN)
    if kind != "COLOR":
        return VariableClassification()

    daisyui = detect_daisyui_name(name)
    if daisyui:
        daisy_name, category = daisyui
        return VariableClassification(
            token_type=TokenType.COLOR,
            color_system=ColorSystem.DAISYUI,
            semantic_role=_daisyui_role(daisy_name, category),
            daisyui_name=daisy_name,
            daisyui_category=category,
            css_variable=f"--{daisy_name.replace('-', '')}",
        )

    tailwind = detect_tailwind_color(name)
    if tailwind:
        color, shade = tailwind
        return VariableClassification(
            token_type=TokenType.COLOR,
            color_system=ColorSystem.TAILWIND,
            semantic_role=_shade_role(shade),
            tailwind_name=color,
            tailwind_shade=shade,
            tailwind_class=f"{color}-{shade}",
            css_variable=f"--color-{color}-{shade}",
        )

    color_system: Optional[ColorSystem] = None
    daisy_match: Optional[str] = None
    if hex_value:
        daisy_match = match_daisyui_color(hex_value)
        if daisy_match:
            color_system = ColorSystem.DAISYUI
        elif _BRAND_RE.search(name):
            color_system = ColorSystem.BRAND
        else:
            color_system = ColorSystem.CUSTOM

    return VariableClassification(
        token_type=TokenType.COLOR,
        color_system=color_system,
        semantic_role=_name_role(name),
        daisyui_name=daisy_match,
    )


@runtime_checkable
class VariableClassifier(Protocol):
    """Assigns classification metadata to a variable during ingestion."""

    def classify(
        self, name: str, resolved_type: str, hex_value: Optional[str]
    ) -> VariableClassification: ...


class DefaultVariableClassifier:
    """Name and palette based classifier backed by classify_variable."""

    def classify(
        self, name: str, resolved_type: str, hex_value: Optional[str]
    ) -> VariableClassification:
        return classify_variable(name, resolved_type, hex_value)


@dataclass(frozen=True)
class NodeClassification:
    """UI component tags for a single node."""

    ui_class: str
    component: str
    category: str
    variant: Optional[str] = None
    size: Optional[str] = None
    tailwind_classes: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class NodeClassifier(Protocol):
    """Maps a raw remote node to UI component tags."""

    def classify(
        self, node: dict[str, Any], parent_name: Optional[str]
    ) -> Optional[NodeClassification]: ...


class NullNodeClassifier:
    """Classifier that never tags a node."""

    def classify(
        self, node: dict[str, Any], parent_name: Optional[str]
    ) -> Optional[NodeClassification]:
        return None
