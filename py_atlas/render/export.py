"""
PNG export of the terrain map and its legend as two separate images.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog
from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..core.settlements import Settlement, SettlementType
from .legend import BIOME_TITLE, SETTLEMENT_TITLE, Legend, MARKER_COLORS

logger = structlog.get_logger()

LEGEND_HEIGHT = 320
LEGEND_BACKGROUND = (30, 30, 30, 242)
SWATCH_SIZE = 24

# (radius, outline color, outline width) per marker tier
MARKER_STYLES = {
    SettlementType.METROPOLIS: (8.0, "#333333", 2),
    SettlementType.CITY: (6.0, "#444444", 2),
    SettlementType.TOWN: (4.0, "#555555", 1),
    SettlementType.VILLAGE: (2.5, "#666666", 1),
}

_RGBA_PATTERN = re.compile(r"rgba\(\s*(\d+),\s*(\d+),\s*(\d+),\s*([\d.]+)\s*\)")


def parse_color(color: str) -> Tuple[int, int, int, int]:
    """'#rrggbb' or 'rgba(r, g, b, a)' with a in [0, 1] to an RGBA tuple."""
    match = _RGBA_PATTERN.fullmatch(color.strip())
    if match:
        r, g, b, a = match.groups()
        return int(r), int(g), int(b), int(round(float(a) * 255))
    r, g, b = ImageColor.getrgb(color)[:3]
    return r, g, b, 255


def map_image(raster: np.ndarray, settlements: Optional[Sequence[Settlement]] = None) -> Image.Image:
    """Map image from an RGBA raster, optionally with settlement dots."""
    image = Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8))
    if not settlements:
        return image

    overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    for settlement in settlements:
        radius, outline, outline_width = MARKER_STYLES[settlement.type]
        fill = parse_color(MARKER_COLORS[settlement.type.value])[:3] + (230,)
        box = [
            settlement.x - radius,
            settlement.y - radius,
            settlement.x + radius,
            settlement.y + radius,
        ]
        draw.ellipse(box, fill=fill, outline=parse_color(outline), width=outline_width)
    return Image.alpha_composite(image, overlay)


def legend_image(legend: Legend, width: int) -> Image.Image:
    """Legend image: biome swatches in two rows, settlement tiers, caption."""
    image = Image.new("RGBA", (width, LEGEND_HEIGHT), LEGEND_BACKGROUND)
    draw = ImageDraw.Draw(image, "RGBA")
    font = ImageFont.load_default()
    border = (255, 255, 255, 77)

    draw.text((30, 22), BIOME_TITLE, fill="white", font=font)
    per_row = max(1, -(-len(legend.biomes) // 2))
    spacing = max(1, (width - 60) // per_row)
    for i, entry in enumerate(legend.biomes):
        x = 30 + (i % per_row) * spacing
        y = 70 + (i // per_row) * 55
        draw.rectangle([x, y, x + SWATCH_SIZE, y + SWATCH_SIZE], fill=parse_color(entry.color), outline=border)
        draw.text((x + SWATCH_SIZE + 10, y + 6), entry.name, fill="white", font=font)

    if legend.settlements:
        draw.text((30, 182), SETTLEMENT_TITLE, fill="white", font=font)
        swatch_width = SWATCH_SIZE * 2 if legend.surface_style else SWATCH_SIZE
        spacing = max(1, (width - 60) // len(legend.settlements))
        for i, entry in enumerate(legend.settlements):
            x = 30 + i * spacing
            y = 235
            draw.rectangle([x, y, x + swatch_width, y + SWATCH_SIZE], fill=parse_color(entry.color), outline=border)
            draw.text((x + swatch_width + 10, y + 6), entry.name, fill="white", font=font)

    if legend.caption:
        draw.text((max(30, width - 320), 285), legend.caption, fill=(153, 153, 153, 255), font=font)

    return image


def export_images(
    raster: np.ndarray,
    legend: Legend,
    directory,
    timestamp: int,
    settlements: Optional[Sequence[Settlement]] = None,
) -> List[Path]:
    """
    Write the map and legend PNGs.

    Args:
        raster: (height, width, 4) uint8 terrain raster
        legend: Legend built for the same settings as the raster
        directory: Output directory (created if missing)
        timestamp: Value embedded in both file names
        settlements: Markers to draw on the map, if any

    Returns:
        Paths of the map and legend images
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    map_path = directory / f"terrain-map-{timestamp}.png"
    legend_path = directory / f"terrain-legend-{timestamp}.png"

    map_image(raster, settlements).save(map_path)
    legend_image(legend, raster.shape[1]).save(legend_path)

    logger.info("Terrain images exported", map=str(map_path), legend=str(legend_path))
    return [map_path, legend_path]
