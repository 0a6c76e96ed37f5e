import math

import numpy as np
import plotly.graph_objects as go

from config import Config
from flightgame.collision import GameState
from flightgame.obstacles import ObstacleLevel


class Render3D:
    """Interactive 3D view of a WorldSnapshot using Plotly."""

    def __init__(self, cfg=None, max_trail_length=600, terrain_stride=None):
        self.cfg = cfg or Config
        self.max_trail_length = max_trail_length
        # Full resolution terrain is 257x257; thin it out for the browser
        self.terrain_stride = terrain_stride
        self.trail = []  # [(x, y, z), ...]

    def reset(self):
        """Clear the flight path."""
        self.trail = []

    def update_trail(self, snapshot):
        self.trail.append(tuple(float(c) for c in snapshot.aircraft.position))
        if len(self.trail) > self.max_trail_length:
            self.trail.pop(0)

    def create_figure(self, snapshot, title="Flight Game 3D View"):
        """Create interactive 3D Plotly figure."""
        fig = go.Figure()

        if snapshot.terrain_ready:
            self._add_terrain(fig, snapshot.heightfield)

        # Runways
        for x0, x1, y0, y1 in self.cfg.RUNWAY_CORRIDORS:
            fig.add_trace(go.Scatter3d(
                x=[x0, x1, x1, x0, x0],
                y=[y0, y0, y1, y1, y0],
                z=[self.cfg.GROUND_HEIGHT] * 5,
                mode='lines',
                line=dict(color='black', width=4),
                showlegend=False,
                hoverinfo='skip'
            ))

        if len(self.trail) >= 2:
            xs, ys, zs = zip(*self.trail)
            fig.add_trace(go.Scatter3d(
                x=xs, y=ys, z=zs,
                mode='lines',
                line=dict(color='rgba(0, 0, 255, 0.4)', width=3),
                name="Flight Path",
                hoverinfo='skip'
            ))

        if snapshot.obstacle_level is not ObstacleLevel.NONE and snapshot.obstacles:
            self._add_obstacles(fig, snapshot.obstacles)

        self._add_aircraft(fig, snapshot)

        outcome = snapshot.outcome
        if outcome.state is not GameState.PLAYING:
            title = f"{title} - {outcome.message}"

        fig.update_layout(
            title=title,
            scene=dict(
                xaxis_title='X',
                yaxis_title='Y',
                zaxis_title='Altitude',
                aspectmode='manual',
                aspectratio=dict(x=1, y=1, z=0.3),
                camera=dict(
                    eye=dict(x=1.5, y=-1.5, z=1.2)
                ),
                xaxis=dict(backgroundcolor="rgb(230, 230,230)"),
                yaxis=dict(backgroundcolor="rgb(230, 230,230)"),
                zaxis=dict(backgroundcolor="rgb(200, 200,230)")
            ),
            showlegend=True,
            legend=dict(x=0.02, y=0.98),
            height=800,
            margin=dict(l=0, r=0, b=0, t=40)
        )

        return fig

    def _add_terrain(self, fig, heightfield):
        stride = self.terrain_stride or max(1, (heightfield.size - 1) // 128)
        p = heightfield.positions[::stride, ::stride]
        snow = self.cfg.TERRAIN_SNOW_LINE
        fig.add_trace(go.Surface(
            x=p[..., 0],
            y=p[..., 1],
            z=p[..., 2],
            surfacecolor=p[..., 2],
            cmin=0.0,
            cmax=max(snow * 1.25, float(p[..., 2].max())),
            colorscale=[
                [0.0, 'rgb(0, 160, 0)'],
                [0.79, 'rgb(0, 40, 0)'],
                [0.8, 'rgb(240, 240, 240)'],
                [1.0, 'rgb(255, 255, 255)'],
            ],
            showscale=False,
            name="Terrain",
            hoverinfo='skip'
        ))

    def _add_obstacles(self, fig, obstacles):
        xs, ys, zs = [], [], []
        for ob in obstacles:
            a, b = ob.capsule(self.cfg.OBSTACLE_HALF_LENGTH)
            # Segments separated by None so one trace draws every body
            xs += [a[0], b[0], None]
            ys += [a[1], b[1], None]
            zs += [a[2], b[2], None]
        fig.add_trace(go.Scatter3d(
            x=xs, y=ys, z=zs,
            mode='lines',
            line=dict(color='red', width=6),
            name="Obstacles",
            hoverinfo='skip'
        ))

    def _add_aircraft(self, fig, snapshot):
        ac = snapshot.aircraft
        fuel = max(0.0, 1.0 - ac.elapsed / self.cfg.FUEL_TIME_LIMIT)
        hover_text = (
            f"<b>Player</b><br>"
            f"Alt: {ac.altitude:.4f}<br>"
            f"Speed: {ac.signed_speed:.5f}<br>"
            f"Heading: {math.degrees(ac.heading):.0f}°<br>"
            f"Roll: {math.degrees(ac.roll):.1f}° Pitch: {math.degrees(ac.pitch):.1f}°<br>"
            f"Throttle: {int(ac.throttle * 100)}%{' (R)' if ac.reverse else ''}<br>"
            f"Fuel: {int(fuel * 100)}%"
        )

        fig.add_trace(go.Scatter3d(
            x=[ac.position[0]],
            y=[ac.position[1]],
            z=[ac.position[2]],
            mode='markers',
            marker=dict(
                size=8,
                color='blue',
                symbol='diamond',
                line=dict(color='white', width=2)
            ),
            name="Player",
            hovertext=hover_text,
            hoverinfo='text'
        ))
        self._add_velocity_vector(fig, ac)

    def _add_velocity_vector(self, fig, ac, scale=5.0):
        """Velocity arrow, scaled up so taxi speeds stay visible."""
        end = np.asarray(ac.position) + np.asarray(ac.velocity) * scale
        fig.add_trace(go.Scatter3d(
            x=[ac.position[0], end[0]],
            y=[ac.position[1], end[1]],
            z=[ac.position[2], end[2]],
            mode='lines',
            line=dict(color='blue', width=4),
            showlegend=False,
            hoverinfo='skip'
        ))

    def save_html(self, fig, filename):
        """Save figure as interactive HTML."""
        fig.write_html(filename)
        print(f"Saved 3D visualization to {filename}")

    def show(self, fig):
        """Display figure in browser."""
        fig.show()
