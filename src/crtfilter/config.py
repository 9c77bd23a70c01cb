"""Configuration management for the CRT filter."""

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

CHANNEL_NAMES = ("red", "green", "blue")


class RasterGeometry(BaseModel):
    """Subpixel geometry of the simulated shadow mask.

    Frozen: the normalization factor and the precomputed row operators are
    derived from these values once per pipeline context.

    Attributes:
        cell_widths: Lit width of the R, G and B cells (virtual pixels).
        cell_blanks: Unlit gap following each of the R, G and B cells.
        cell_height: Lit height of one RGB triplet (virtual rows).
        cell_gap: Unlit rows after each triplet.
        stagger: Vertical offset applied to each successive triplet column.
        horizontal_cells: Number of triplet columns across the virtual raster.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    cell_widths: tuple[int, int, int] = (2, 2, 2)
    cell_blanks: tuple[int, int, int] = (1, 1, 2)
    cell_height: int = Field(default=5, gt=0)
    cell_gap: int = Field(default=1, ge=0)
    stagger: int = Field(default=3, ge=0)
    horizontal_cells: int = Field(default=640, gt=0)

    @field_validator("cell_widths")
    @classmethod
    def validate_cell_widths(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        """Validate that every cell is at least one virtual pixel wide."""
        if any(w <= 0 for w in v):
            raise ValueError(f"cell_widths must all be positive, got {v}")
        return v

    @field_validator("cell_blanks")
    @classmethod
    def validate_cell_blanks(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        """Validate that no blank is negative."""
        if any(b < 0 for b in v):
            raise ValueError(f"cell_blanks must be non-negative, got {v}")
        return v

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "RasterGeometry":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in RasterGeometry (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self

    @property
    def horizontal_period(self) -> int:
        """Width of one RGB triplet including blanks."""
        return sum(self.cell_widths) + sum(self.cell_blanks)

    @property
    def vertical_period(self) -> int:
        """Height of one triplet including the gap row(s)."""
        return self.cell_height + self.cell_gap

    @property
    def virtual_width(self) -> int:
        """Width of the virtual horizontal raster."""
        return self.horizontal_cells * self.horizontal_period

    def cell_span(self, channel: int) -> tuple[int, int]:
        """Return the ``[start, end)`` range of a channel's cell within a period.

        Args:
            channel: 0 = red, 1 = green, 2 = blue.

        Returns:
            Tuple of (start, end) offsets inside one horizontal period.
        """
        if channel not in (0, 1, 2):
            raise ValueError(f"channel must be 0, 1 or 2, got {channel}")
        start = 0
        for c in range(channel):
            start += self.cell_widths[c] + self.cell_blanks[c]
        return start, start + self.cell_widths[channel]


class ToneConfig(BaseModel):
    """Filter, scanline and post-processing constants.

    Attributes:
        gamma: Gamma used to linearize input and re-encode output.
        filter_radius: Lanczos lobe count.
        blur: Extra support widening for the resampler (1.0 = none).
        scanline_sigma: Width of the Gaussian scanline profile.
        normalization_samples: Samples per scanline period used when
            estimating the scanline energy.
        sharp_scale: Integer scale of the sharp base layer.
        glow_scale: Integer scale of the layer fed into the glow blur.
        glow_radius: Glow kernel radius at the reference output width.
        glow_reference_width: Output width at which ``glow_radius`` applies.
    """

    model_config = ConfigDict(extra="allow")

    gamma: float = Field(default=2.0, gt=0)
    filter_radius: int = Field(default=2, gt=0)
    blur: float = Field(default=1.0, gt=0)
    scanline_sigma: float = Field(default=0.3, gt=0)
    normalization_samples: int = Field(default=8, gt=0)
    sharp_scale: float = 255.0
    glow_scale: float = 600.0
    glow_radius: float = Field(default=3.0, ge=0)
    glow_reference_width: int = Field(default=640, gt=0)

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "ToneConfig":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in ToneConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self


class StreamConfig(BaseModel):
    """Frame dimensions of the input and output streams.

    Attributes:
        input_width: Width of each incoming frame in pixels.
        input_height: Height of each incoming frame in pixels.
        output_width: Width of each produced frame in pixels.
        output_height: Height of each produced frame in pixels.
        scanlines: Number of simulated scanlines (virtual scanline count).
    """

    model_config = ConfigDict(extra="allow")

    input_width: int = Field(default=640, gt=0)
    input_height: int = Field(default=400, gt=0)
    output_width: int = Field(default=1280, gt=0)
    output_height: int = Field(default=800, gt=0)
    scanlines: int = Field(default=400, gt=0)

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "StreamConfig":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in StreamConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self

    @property
    def input_frame_bytes(self) -> int:
        """Size of one raw input frame (4 bytes per pixel)."""
        return self.input_width * self.input_height * 4

    @property
    def output_frame_bytes(self) -> int:
        """Size of one raw output frame (4 bytes per pixel)."""
        return self.output_width * self.output_height * 4


class RuntimeConfig(BaseModel):
    """Runtime settings.

    Attributes:
        device: PyTorch device string.
        num_threads: Intra-op thread count for torch (None = torch default).
        cache_size: Number of recent frames remembered by the frame cache
            (0 disables it).
        quiet: Suppress progress output.
    """

    model_config = ConfigDict(extra="allow")

    device: Literal["cpu", "cuda"] = "cpu"
    num_threads: int | None = Field(default=None, gt=0)
    cache_size: int = Field(default=4, ge=0)
    quiet: bool = False

    @model_validator(mode="after")
    def warn_extra_fields(self) -> "RuntimeConfig":
        """Warn about unknown configuration keys."""
        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in RuntimeConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )
        return self


class FilterConfig(BaseModel):
    """Top-level configuration for the CRT filter.

    Attributes:
        stream: Input/output dimensions.
        raster: Shadow mask geometry.
        tone: Filter and post-processing constants.
        runtime: Runtime configuration.
    """

    model_config = ConfigDict(extra="allow")

    stream: StreamConfig = Field(default_factory=StreamConfig)
    raster: RasterGeometry = Field(default_factory=RasterGeometry)
    tone: ToneConfig = Field(default_factory=ToneConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="after")
    def check_cross_section_constraints(self) -> "FilterConfig":
        """Validate cross-section constraints and warn about extra fields."""
        virtual_width = self.raster.virtual_width
        if virtual_width < self.stream.output_width:
            logger.warning(
                "Virtual raster width %d is narrower than the output width %d; "
                "the shadow mask will alias. Increase raster.horizontal_cells.",
                virtual_width,
                self.stream.output_width,
            )
        if virtual_width < self.stream.input_width:
            logger.warning(
                "Virtual raster width %d is narrower than the input width %d; "
                "input columns will be dropped.",
                virtual_width,
                self.stream.input_width,
            )

        if self.__pydantic_extra__:
            logger.warning(
                "Unknown config keys in FilterConfig (ignored): %s",
                list(self.__pydantic_extra__.keys()),
            )

        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> "FilterConfig":
        """Load configuration from a YAML file.

        Missing fields use their default values.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Loaded configuration with defaults filled in.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If validation fails (with all errors collected).
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}

        cls._log_default_sections(data)

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            formatted_errors = format_validation_errors(e)
            raise ValueError(
                f"Configuration validation failed:\n{formatted_errors}"
            ) from None

        return config

    @staticmethod
    def _log_default_sections(data: dict[str, Any]) -> None:
        """Log INFO messages about sections using defaults.

        Args:
            data: Configuration dictionary.
        """
        for section in ("stream", "raster", "tone", "runtime"):
            if section not in data:
                logger.info("Using default: %s (all defaults)", section)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file.

        All fields including defaults are written for explicitness.

        Args:
            path: Path to output YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def with_stream(self, **dimensions: int) -> "FilterConfig":
        """Return a copy with some stream dimensions replaced (validated).

        Args:
            **dimensions: StreamConfig fields to override.

        Returns:
            New FilterConfig.

        Raises:
            ValueError: If the resulting dimensions are invalid.
        """
        stream_data = self.stream.model_dump()
        stream_data.update(dimensions)
        try:
            stream = StreamConfig.model_validate(stream_data)
        except ValidationError as e:
            raise ValueError(
                f"Configuration validation failed:\n"
                f"{format_validation_errors(e, prefix='stream')}"
            ) from None
        return self.model_copy(update={"stream": stream})


def format_validation_errors(error: ValidationError, prefix: str | None = None) -> str:
    """Format Pydantic validation errors with YAML-style paths.

    Args:
        error: Pydantic ValidationError.
        prefix: Optional section name prepended to every path.

    Returns:
        Formatted error string with YAML paths and messages.
    """
    lines = []
    for err in error.errors():
        path_parts = [prefix] if prefix else []
        for part in err["loc"]:
            if isinstance(part, int) and path_parts:
                path_parts[-1] = f"{path_parts[-1]}[{part}]"
            else:
                path_parts.append(str(part))

        path = ".".join(path_parts)
        lines.append(f"  {path}: {err['msg']}")

    return "\n".join(lines)
