"""
Monochrome Display for CHIP-8 Emulator
======================================

The CHIP-8 display is a 64 x 32 grid of on/off pixels, origin top-left,
stored row-major. Each cell holds $00 (off) or $FF (on); sprite drawing
XORs $FF into a cell, so no other value is ever observed.

Sprites are up to 15 rows of 8 pixels, one byte per row with the most
significant bit leftmost. Drawing wraps toroidally: pixels that run off
the right or bottom edge reappear on the left or top. Nothing is ever
clipped.

Copyright (c) 2025 CHIP-8 SDK Contributors
"""

from dataclasses import dataclass
from typing import List, Optional

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

PIXEL_ON = 0xFF
PIXEL_OFF = 0x00


@dataclass
class DisplayState:
    """
    Display bookkeeping that is not part of the framebuffer itself.
    """
    needs_refresh: bool = True  # Framebuffer changed since last acknowledge
    draw_count: int = 0  # Number of sprite draws since reset


class Display:
    """
    64 x 32 monochrome framebuffer with XOR sprite drawing.

    The host renders `pixels` or `get_grid()` between cycles. The
    `needs_refresh` flag tells it whether anything changed since it
    last called `acknowledge_refresh()`.

    Example:
        >>> display = Display()
        >>> display.draw_sprite(0, 0, bytes([0x80]))
        False
        >>> display.get_pixel(0, 0)
        True
        >>> display.draw_sprite(0, 0, bytes([0x80]))  # erase, collision
        True
    """

    def __init__(self):
        self._pixels = bytearray(DISPLAY_WIDTH * DISPLAY_HEIGHT)
        self._state = DisplayState()

    @property
    def width(self) -> int:
        """Display width in pixels."""
        return DISPLAY_WIDTH

    @property
    def height(self) -> int:
        """Display height in pixels."""
        return DISPLAY_HEIGHT

    @property
    def needs_refresh(self) -> bool:
        """True if the framebuffer changed since the last acknowledge."""
        return self._state.needs_refresh

    @property
    def draw_count(self) -> int:
        """Number of sprite draws since reset."""
        return self._state.draw_count

    def acknowledge_refresh(self) -> None:
        """Mark the current framebuffer as presented."""
        self._state.needs_refresh = False

    def reset(self) -> None:
        """Clear the framebuffer and bookkeeping."""
        self._pixels = bytearray(DISPLAY_WIDTH * DISPLAY_HEIGHT)
        self._state = DisplayState()

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels[:] = bytes(DISPLAY_WIDTH * DISPLAY_HEIGHT)
        self._state.needs_refresh = True

    # =========================================================================
    # Sprite Drawing
    # =========================================================================

    def draw_sprite(self, x: int, y: int, sprite: bytes) -> bool:
        """
        XOR a sprite onto the framebuffer.

        The origin is reduced modulo the display size first; every sprite
        pixel then wraps independently.

        Args:
            x: Column of the sprite's left edge (any value, taken mod 64)
            y: Row of the sprite's top edge (any value, taken mod 32)
            sprite: One byte per row, bit 7 is the leftmost pixel

        Returns:
            True if any lit pixel was turned off (collision)
        """
        origin_x = x % DISPLAY_WIDTH
        origin_y = y % DISPLAY_HEIGHT
        collision = False

        for row, bits in enumerate(sprite):
            target_row = ((origin_y + row) % DISPLAY_HEIGHT) * DISPLAY_WIDTH
            for col in range(8):
                if not bits & (0x80 >> col):
                    continue
                index = target_row + (origin_x + col) % DISPLAY_WIDTH
                if self._pixels[index] == PIXEL_ON:
                    collision = True
                self._pixels[index] ^= PIXEL_ON

        self._state.draw_count += 1
        self._state.needs_refresh = True
        return collision

    # =========================================================================
    # Output
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> bool:
        """
        Get a single pixel.

        Raises:
            IndexError: If (x, y) is outside the display
        """
        if not (0 <= x < DISPLAY_WIDTH and 0 <= y < DISPLAY_HEIGHT):
            raise IndexError(f"Pixel ({x}, {y}) outside {DISPLAY_WIDTH}x{DISPLAY_HEIGHT} display")
        return self._pixels[y * DISPLAY_WIDTH + x] == PIXEL_ON

    @property
    def pixels(self) -> bytes:
        """Raw framebuffer copy, row-major, $00 or $FF per pixel."""
        return bytes(self._pixels)

    def get_grid(self) -> List[List[bool]]:
        """Framebuffer as DISPLAY_HEIGHT rows of DISPLAY_WIDTH booleans."""
        return [
            [self._pixels[row * DISPLAY_WIDTH + col] == PIXEL_ON for col in range(DISPLAY_WIDTH)]
            for row in range(DISPLAY_HEIGHT)
        ]

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """
        Render the framebuffer as text, one line per pixel row.

        Args:
            on: Character for lit pixels
            off: Character for dark pixels
        """
        lines = []
        for row in self.get_grid():
            lines.append("".join(on if lit else off for lit in row))
        return "\n".join(lines)

    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(1 for value in self._pixels if value == PIXEL_ON)

    def render_image(self, scale: int = 8) -> Optional[bytes]:
        """
        Render display as PNG image (requires PIL).

        Args:
            scale: Pixel scale factor (default 8)

        Returns:
            PNG image bytes, or None if PIL not available
        """
        try:
            from PIL import Image
            import io
        except ImportError:
            return None

        img = Image.new("L", (DISPLAY_WIDTH, DISPLAY_HEIGHT), color=0)
        img.putdata(list(self._pixels))

        if scale > 1:
            img = img.resize(
                (DISPLAY_WIDTH * scale, DISPLAY_HEIGHT * scale),
                resample=Image.NEAREST,
            )

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        """Get framebuffer state for snapshot (one byte per pixel)."""
        return [1 if value == PIXEL_ON else 0 for value in self._pixels]

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """Restore framebuffer state from snapshot."""
        size = DISPLAY_WIDTH * DISPLAY_HEIGHT
        self._pixels = bytearray(
            PIXEL_ON if value else PIXEL_OFF for value in data[offset:offset + size]
        )
        self._state.needs_refresh = True
        return size
