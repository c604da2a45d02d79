"""Colour schemes: defaults, ``name=value`` config files and HSV conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Iterable, Sequence, TextIO

RGB = tuple[float, float, float]

MAX_NUMBER_OF_COLORS = 32

_CHANNELS = {"r": 0, "g": 1, "b": 2}
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_AGENT_KEY = re.compile(r"agent_(\d+)_([rgb])")

_DEFAULT_AGENT_COLOR: RGB = (0.2, 0.2, 0.6)


def _rgb(red: float, green: float, blue: float) -> RGB:
    return (float(red), float(green), float(blue))


def _with_channel(color: Sequence[float], channel: int, value: float) -> RGB:
    components = list(color)
    components[channel] = float(value)
    return _rgb(*components)


@dataclass
class ModelSpecificColor:
    """A colour defined by a model, addressed in files as ``<name>_r/_g/_b``."""

    name: str
    rgb: RGB = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if len(self.rgb) != 3:
            raise ValueError("a colour needs exactly three components")
        self.rgb = _rgb(*self.rgb)


@dataclass
class ColorConfig:
    """Every colour used when drawing; components are in the range 0-1."""

    erase_color: RGB = (0.1, 0.1, 0.1)
    menu_item_color: RGB = (0.1, 0.9, 0.4)
    menu_selection_color: RGB = (0.1, 0.9, 0.4)
    agents_default_color: RGB = _DEFAULT_AGENT_COLOR
    agents_color: list[RGB] = field(default_factory=list)
    agents_in_danger_color: RGB = (0.8, 0.1, 0.1)
    velocity_label_color: RGB = (0.1, 0.1, 0.1)
    velocity_arrow_color: RGB = (0.8, 0.8, 0.8)
    label_color: RGB = (0.1, 0.1, 0.1)
    comm_network_color: RGB = (0.8, 0.8, 0.6)
    paused_caption_color: RGB = (0.1, 0.9, 0.4)
    collision_caption_color: RGB = (0.1, 0.9, 0.4)
    elapsed_time_caption_color: RGB = (0.1, 0.9, 0.4)
    axis_color: RGB = (0.2, 0.2, 0.2)

    @classmethod
    def for_agents(cls, number_of_agents: int) -> "ColorConfig":
        """Return the default scheme with one default-coloured entry per agent."""
        if number_of_agents < 0:
            raise ValueError("number of agents must not be negative")
        return cls(agents_color=[_DEFAULT_AGENT_COLOR] * number_of_agents)

    def set_agent_color(self, which_agent: int, color: Sequence[float]) -> None:
        """Set one agent's colour; indices outside the agent list are ignored."""
        if 0 <= which_agent < len(self.agents_color):
            self.agents_color[which_agent] = _rgb(*color[:3])

    def reset_agents_color(self, color: Sequence[float]) -> None:
        """Set every agent's colour to ``color``."""
        for which_agent in range(len(self.agents_color)):
            self.set_agent_color(which_agent, color)


_COLOR_ATTRIBUTES = {f.name for f in fields(ColorConfig)} - {"agents_color"}

# file key -> (attribute, channel)
_CONFIG_KEYS: dict[str, tuple[str, int]] = {}
for _prefix, _attribute in (
    ("background", "erase_color"),
    ("menu_selection", "menu_selection_color"),
    ("menu_item", "menu_item_color"),
    ("agents_indanger", "agents_in_danger_color"),
    ("agents_velocitylabel", "velocity_label_color"),
    ("agents_label", "label_color"),
    ("agents_velocityarrow", "velocity_arrow_color"),
    ("axis", "axis_color"),
    ("collisioncaption", "collision_caption_color"),
    ("elapsedtimecaption", "elapsed_time_caption_color"),
    ("comm_network", "comm_network_color"),
):
    for _suffix, _channel in _CHANNELS.items():
        _CONFIG_KEYS[f"{_prefix}_{_suffix}"] = (_attribute, _channel)
# Every paused-caption key lands on the blue channel of the menu selection.
for _suffix in _CHANNELS:
    _CONFIG_KEYS[f"paused_caption_{_suffix}"] = ("menu_selection_color", 2)


def hsv_to_rgb(hue: int, saturation: int, value: int) -> RGB:
    """Convert 0-255 HSV components (hue cyclic) to an RGB triple in 0-1."""
    for component in (hue, saturation, value):
        if not 0 <= component <= 255:
            raise ValueError("HSV components must lie in 0-255")
    if not saturation:
        gray = value / 255.0
        return (gray, gray, gray)
    h = hue / 255.0
    s = saturation / 255.0
    v = value / 255.0
    sector = int(h * 6.0)
    f = h * 6.0 - sector
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))
    return (
        (v, t, p),
        (q, v, p),
        (p, v, t),
        (p, q, v),
        (t, p, v),
        (v, p, q),
    )[sector % 6]


def lerp_color(start: Sequence[float], end: Sequence[float], factor: float) -> RGB:
    """Interpolate linearly between two colours."""
    return _rgb(*(a + (b - a) * factor for a, b in zip(start[:3], end[:3])))


def _atof(text: str) -> float:
    """Parse the leading number of ``text``; 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _find_char_or_comment(text: str, char: str) -> int:
    """Index of ``char`` or of a ``;`` comment preceded by whitespace, else len."""
    previous_was_space = False
    for index, current in enumerate(text):
        if current == char or (previous_was_space and current == ";"):
            return index
        previous_was_space = current.isspace()
    return len(text)


def apply_model_specific_color(
    name: str, value: float, model_colors: Iterable[ModelSpecificColor]
) -> bool:
    """Set the channel of the first model colour that ``name`` addresses.

    Returns whether a colour matched.
    """
    for color in model_colors:
        for suffix, channel in _CHANNELS.items():
            if name == f"{color.name}_{suffix}":
                color.rgb = _with_channel(color.rgb, channel, value)
                return True
    return False


def _apply_entry(
    config: ColorConfig,
    name: str,
    value: float,
    model_colors: list[ModelSpecificColor],
) -> None:
    if name in _CONFIG_KEYS:
        attribute, channel = _CONFIG_KEYS[name]
        setattr(config, attribute, _with_channel(getattr(config, attribute), channel, value))
        return
    if name in ("agents_r", "agents_g", "agents_b"):
        channel = _CHANNELS[name[-1]]
        config.agents_color = [
            _with_channel(color, channel, value) for color in config.agents_color
        ]
        config.agents_default_color = _with_channel(
            config.agents_default_color, channel, value
        )
        return
    match = _AGENT_KEY.fullmatch(name)
    if match:
        which_agent = int(match.group(1))
        if which_agent < len(config.agents_color):
            config.agents_color[which_agent] = _with_channel(
                config.agents_color[which_agent], _CHANNELS[match.group(2)], value
            )
            return
    apply_model_specific_color(name, value, model_colors)


def load_color_config(
    stream: TextIO,
    number_of_agents: int,
    model_colors: list[ModelSpecificColor] | None = None,
) -> ColorConfig:
    """Read ``name=value`` colour lines from ``stream`` over the default scheme.

    Lines starting with ``;`` or ``#`` are comments. Names the scheme does not
    know are offered to ``model_colors``, which are updated in place.
    """
    colors = model_colors if model_colors is not None else []
    if len(colors) > MAX_NUMBER_OF_COLORS:
        raise ValueError(f"at most {MAX_NUMBER_OF_COLORS} model-specific colours")
    config = ColorConfig.for_agents(number_of_agents)
    for raw_line in stream:
        line = raw_line.strip()
        if not line or line[0] in ";#":
            continue
        separator = _find_char_or_comment(line, "=")
        if separator >= len(line) or line[separator] != "=":
            continue
        name = line[:separator].rstrip()
        value = _atof(line[separator + 1:])
        _apply_entry(config, name, value, colors)
    return config