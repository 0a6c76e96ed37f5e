# Terrain synthesis: diamond-square heightfield, runway flattening, normals and colours
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from config import Config
from flightgame.utils.map_limits import MapLimits


class GenerationStage(Enum):
    """Stages of terrain generation, in execution order."""
    PENDING = 0     # Nothing done yet; next step seeds the control heights
    VERTICES = 1    # Diamond-square levels, one level per step
    FIELDS = 2      # Sea level clamp, runway corridors, border cliffs
    INDICES = 3
    NORMALS = 4
    COLORS = 5
    READY = 6


@dataclass(frozen=True)
class StageReport:
    stage: GenerationStage   # Stage that will run on the next call (READY once finished)
    progress: float          # Fraction of all work units completed, 0.0 - 1.0
    message: str


# Each pair is (first, second) neighbour offsets (d_row, d_col) of one triangle touching a vertex.
# cross(first - self, second - self) points upwards for all six.
_NORMAL_TRIANGLES = (
    ((0, -1), (-1, 0)),
    ((-1, 0), (-1, 1)),
    ((-1, 1), (0, 1)),
    ((0, 1), (1, 0)),
    ((1, 0), (1, -1)),
    ((1, -1), (0, -1)),
)


class Heightfield:
    """
    Read-only terrain grid of side N = 2^L + 1 covering [-1, 1] x [-1, 1].

    Vertex (row, col) lies at x = -1 + col * spacing, y = -1 + row * spacing.
    All arrays are frozen numpy arrays; consumers query, never mutate.
    """

    def __init__(self, positions, normals, colors, indices):
        self.positions = positions      # (N, N, 3)
        self.normals = normals          # (N, N, 3), unit length
        self.colors = colors            # (N, N, 3)
        self.indices = indices          # (2 * (N-1)^2, 3) vertex indices, row-major
        for arr in (self.positions, self.normals, self.colors, self.indices):
            arr.setflags(write=False)
        self.size = positions.shape[0]
        self.spacing = 2.0 / (self.size - 1)

    @property
    def heights(self):
        return self.positions[..., 2]

    def is_ready(self):
        return True

    def vertex_height(self, row, col):
        return float(self.positions[row, col, 2])

    def height_at(self, x, y):
        """
        Terrain height under (x, y), interpolated on the triangle of the grid
        cell that contains the point.

        The lower triangle (dx + dy <= 1) is anchored at (row, col), the upper
        one at (row + 1, col + 1). Points outside the grid are clamped onto
        the nearest edge cell.
        """
        n = self.size
        u = (x + 1.0) / self.spacing
        v = (y + 1.0) / self.spacing
        col = min(max(int(math.floor(u)), 0), n - 2)
        row = min(max(int(math.floor(v)), 0), n - 2)
        dx = min(max(u - col, 0.0), 1.0)
        dy = min(max(v - row, 0.0), 1.0)

        h = self.positions[..., 2]
        if dx + dy <= 1.0:
            gradient_x = h[row, col + 1] - h[row, col]
            gradient_y = h[row + 1, col] - h[row, col]
            z = h[row, col] + dx * gradient_x + dy * gradient_y
        else:
            gradient_x = h[row + 1, col + 1] - h[row + 1, col]
            gradient_y = h[row + 1, col + 1] - h[row, col + 1]
            z = h[row + 1, col + 1] - (1.0 - dx) * gradient_x - (1.0 - dy) * gradient_y
        return float(z)


class TerrainGenerator:
    """
    Staged diamond-square terrain generator.

    Each call to advance() performs exactly one unit of work (seeding, one
    diamond-square level, or one later stage) so a tick-driven caller can
    spread generation over several frames. run() drives every remaining
    stage synchronously.

    Args:
        cfg: Configuration class (defaults to Config)
        rng: numpy Generator used for the random offsets
        offset_fn: Optional callable (top_level, level) -> float replacing
                   the random offset, e.g. lambda *_: 0.0 for noiseless terrain
        detail_level: Override for cfg.TERRAIN_DETAIL_LEVEL
    """

    def __init__(self, cfg=None, rng=None, offset_fn=None, detail_level=None):
        self.cfg = cfg or Config
        self.detail_level = self.cfg.TERRAIN_DETAIL_LEVEL if detail_level is None else detail_level
        if not isinstance(self.detail_level, int) or self.detail_level < 1:
            raise ValueError(f"Terrain detail level must be a positive integer, got {self.detail_level!r}")
        self.size = 2 ** self.detail_level + 1
        self.rng = rng if rng is not None else np.random.default_rng()
        self.offset_fn = offset_fn or self._random_offset

        self.stage = GenerationStage.PENDING
        self._level = self.detail_level - 1
        self._units_done = 0
        # Seeding + one unit per diamond-square level + fields/indices/normals/colors
        self._units_total = 1 + (self.detail_level - 1) + 4

        n = self.size
        self._positions = np.zeros((n, n, 3), dtype=np.float64)
        self._normals = None
        self._colors = None
        self._indices = None
        self._heightfield = None

    # === PUBLIC API ===

    def is_ready(self):
        return self.stage is GenerationStage.READY

    @property
    def heightfield(self):
        """The finished Heightfield. Raises RuntimeError before READY."""
        if self._heightfield is None:
            raise RuntimeError(f"Terrain is not ready (stage {self.stage.name})")
        return self._heightfield

    @property
    def heights(self):
        """Working height grid, exposed for inspection while generation is in progress."""
        view = self._positions[..., 2]
        view.setflags(write=False)
        return view

    def advance(self):
        """Run the next unit of work and report where generation stands."""
        stage = self.stage
        if stage is GenerationStage.PENDING:
            self._seed()
            self.stage = GenerationStage.VERTICES if self._level >= 1 else GenerationStage.FIELDS
        elif stage is GenerationStage.VERTICES:
            self._diamond_square_level(self._level)
            self._level -= 1
            if self._level < 1:
                self.stage = GenerationStage.FIELDS
        elif stage is GenerationStage.FIELDS:
            self._flatten_fields()
            self.stage = GenerationStage.INDICES
        elif stage is GenerationStage.INDICES:
            self._indices = self._generate_indices()
            self.stage = GenerationStage.NORMALS
        elif stage is GenerationStage.NORMALS:
            self._normals = self._generate_normals()
            self.stage = GenerationStage.COLORS
        elif stage is GenerationStage.COLORS:
            self._colors = self._generate_colors()
            self._heightfield = Heightfield(self._positions, self._normals, self._colors, self._indices)
            self.stage = GenerationStage.READY
        else:
            return self.report()

        self._units_done += 1
        return self.report()

    def run(self, progress=None):
        """
        Generate the whole terrain synchronously.

        Args:
            progress: Optional callable receiving a StageReport after every step

        Returns:
            Heightfield: the finished, read-only terrain
        """
        while not self.is_ready():
            report = self.advance()
            if progress is not None:
                progress(report)
        return self._heightfield

    def report(self):
        fraction = self._units_done / self._units_total
        stage = self.stage
        if stage is GenerationStage.VERTICES:
            done = self.detail_level - 1 - self._level
            pct = 100.0 * done / max(self.detail_level - 1, 1)
            message = f"Generating terrain vertices..... {pct:.0f}%"
        elif stage is GenerationStage.FIELDS:
            message = "Generating terrain fields..... 100%"
        elif stage is GenerationStage.INDICES:
            message = "Generating terrain indices..... 100%"
        elif stage is GenerationStage.NORMALS:
            message = "Generating terrain normals....."
        elif stage is GenerationStage.COLORS:
            message = "Generating terrain colors....."
        elif stage is GenerationStage.READY:
            message = "Terrain ready."
        else:
            message = "Generating terrain vertices..... 0%"
        return StageReport(stage=stage, progress=fraction, message=message)

    # === STAGES ===

    def _random_offset(self, top_level, level):
        """Uniform in +-0.5 * initial * decay^(top_level - level)."""
        return ((self.rng.random() - 0.5) * self.cfg.TERRAIN_RANDOM_INITIAL
                * self.cfg.TERRAIN_RANDOM_DECAY ** (top_level - level))

    def _seed(self):
        n = self.size
        coords = -1.0 + 2.0 / (n - 1) * np.arange(n)
        self._positions[..., 0] = coords[np.newaxis, :]
        self._positions[..., 1] = coords[:, np.newaxis]

        h = self._positions[..., 2]
        last, mid = n - 1, (n - 1) // 2
        corner, ns, we = self.cfg.TERRAIN_SEED_CORNER, self.cfg.TERRAIN_SEED_EDGE_NS, self.cfg.TERRAIN_SEED_EDGE_WE
        h[0, 0] = h[0, last] = h[last, 0] = h[last, last] = corner
        h[0, mid] = h[last, mid] = ns
        h[mid, 0] = h[mid, last] = we
        h[mid, mid] = self.cfg.TERRAIN_SEED_CENTER

    def _diamond_square_level(self, level):
        """
        One diamond-square pass over squares of side 2^level.

        Diamond step fills every square centre, then the square step fills the
        edge midpoints from 3 neighbours on the grid boundary, 4 inside.
        Interior edges are shared, so each square only writes its bottom and
        left midpoints on the first row/column and always its top and right.
        """
        top = self.detail_level
        h = self._positions[..., 2]
        stride = 2 ** level
        half = stride // 2
        times = 2 ** (top - level)
        offset = self.offset_fn

        # === DIAMOND STEP ===
        for s_row in range(times):
            for s_col in range(times):
                row, col = s_row * stride, s_col * stride
                corners = (h[row, col] + h[row, col + stride]
                           + h[row + stride, col + stride] + h[row + stride, col])
                h[row + half, col + half] = corners / 4.0 + offset(top, level)

        # === SQUARE STEP ===
        for s_row in range(times):
            for s_col in range(times):
                row, col = s_row * stride, s_col * stride
                center = h[row + half, col + half]

                # Bottom midpoint (only the south grid edge is left to this square)
                if s_row == 0:
                    h[row, col + half] = (h[row, col] + center + h[row, col + stride]) / 3.0 + offset(top, level)

                # Left midpoint (only the west grid edge)
                if s_col == 0:
                    h[row + half, col] = (h[row, col] + center + h[row + stride, col]) / 3.0 + offset(top, level)

                # Top midpoint
                if s_row == times - 1:
                    h[row + stride, col + half] = (
                        h[row + stride, col] + center + h[row + stride, col + stride]) / 3.0 + offset(top, level)
                else:
                    h[row + stride, col + half] = (
                        h[row + stride, col] + center + h[row + stride, col + stride]
                        + h[row + stride + half, col + half]) / 4.0 + offset(top, level)

                # Right midpoint
                if s_col == times - 1:
                    h[row + half, col + stride] = (
                        h[row, col + stride] + center + h[row + stride, col + stride]) / 3.0 + offset(top, level)
                else:
                    h[row + half, col + stride] = (
                        h[row, col + stride] + center + h[row + stride, col + stride]
                        + h[row + half, col + stride + half]) / 4.0 + offset(top, level)

    def _flatten_fields(self):
        """Clamp to sea level, flatten runway corridors and drop the outer ring to form cliffs."""
        x = self._positions[..., 0]
        y = self._positions[..., 1]
        h = self._positions[..., 2]

        h[h < 0.0] = 0.0

        for box in self.cfg.RUNWAY_CORRIDORS:
            runway = MapLimits(*box)
            mask = ((x >= runway.min_x) & (x <= runway.max_x)
                    & (y >= runway.min_y) & (y <= runway.max_y))
            h[mask] = 0.0

        h[0, :] = 0.0
        h[-1, :] = 0.0
        h[:, 0] = 0.0
        h[:, -1] = 0.0

    def _generate_indices(self):
        """Two triangles per cell: (r,c),(r,c+1),(r+1,c) then (r,c+1),(r+1,c+1),(r+1,c)."""
        n = self.size
        rows, cols = np.meshgrid(np.arange(n - 1), np.arange(n - 1), indexing="ij")
        v = (rows * n + cols).astype(np.uint32)
        tris = np.stack([v, v + 1, v + n, v + 1, v + n + 1, v + n], axis=-1)
        return tris.reshape(-1, 3)

    def _generate_normals(self):
        """Average of the unit normals of the (up to six) triangles around each vertex."""
        n = self.size
        p = self._positions
        total = np.zeros_like(p)
        count = np.zeros((n, n, 1))

        for (dr1, dc1), (dr2, dc2) in _NORMAL_TRIANGLES:
            r_lo, r_hi = max(0, -min(dr1, dr2)), n - max(0, dr1, dr2)
            c_lo, c_hi = max(0, -min(dc1, dc2)), n - max(0, dc1, dc2)
            center = p[r_lo:r_hi, c_lo:c_hi]
            first = p[r_lo + dr1:r_hi + dr1, c_lo + dc1:c_hi + dc1] - center
            second = p[r_lo + dr2:r_hi + dr2, c_lo + dc2:c_hi + dc2] - center
            normal = np.cross(first, second)
            normal /= np.linalg.norm(normal, axis=-1, keepdims=True)
            total[r_lo:r_hi, c_lo:c_hi] += normal
            count[r_lo:r_hi, c_lo:c_hi] += 1.0

        average = total / count
        return average / np.linalg.norm(average, axis=-1, keepdims=True)

    def _generate_colors(self):
        """Snow above the snow line, otherwise green darkening with altitude."""
        h = self._positions[..., 2]
        snow_line = self.cfg.TERRAIN_SNOW_LINE
        colors = np.zeros_like(self._positions)
        colors[..., 1] = 1.2 - h / snow_line * 0.9
        colors[h > snow_line] = self.cfg.TERRAIN_SNOW_COLOR
        return colors
