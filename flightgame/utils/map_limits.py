"""
    Implements axis-aligned rectangles on the horizontal plane used for land,
    runway and destination tests.
"""


class MapLimits:
    def __init__(self, min_x, max_x, min_y, max_y):
        self.min_x = min_x
        self.max_x = max_x
        self.min_y = min_y
        self.max_y = max_y

    def x_extent(self):
        return self.max_x - self.min_x

    def y_extent(self):
        return self.max_y - self.min_y

    def center(self):
        return self.absolute_position(0.5, 0.5)

    def absolute_position(self, x_rel, y_rel):
        """Convert relative [0,1] coordinates to absolute x,y."""
        x = x_rel * self.x_extent() + self.min_x
        y = y_rel * self.y_extent() + self.min_y
        return x, y

    def in_boundary(self, x, y):
        """Closed test, both edges inclusive."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def contains_half_open(self, x, y):
        """Half-open test [min, max), so adjacent boxes never share an edge."""
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y
