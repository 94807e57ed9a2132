"""Matplotlib static PNG renderer: top-down preview of one shadow frame."""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from matplotlib.patches import Polygon

from sunshadows.models import ShadowFrame, ShadowParams

_ROOT = Path(__file__).parent.parent.parent.parent

_GROUND = "#F7F9FA"
_BUILDING = "#B9C3CC"
_SHADOW = "#000000"
_SUN = "#f2b134"

# Square footprint, 40 px on a side, centred on the origin
_FOOTPRINT = np.array([[-20.0, -20.0], [20.0, -20.0], [20.0, 20.0], [-20.0, 20.0]])


def _shadow_patch(params: ShadowParams, is_night: bool) -> Polygon:
    alpha = 0.0 if is_night else float(np.clip(params.opacity, 0.0, 1.0))
    if np.isnan(alpha):
        alpha = 0.0
    shifted = _FOOTPRINT + np.array([params.offset_x, params.offset_y])
    return Polygon(
        np.nan_to_num(shifted),
        closed=True,
        facecolor=_SHADOW,
        alpha=alpha,
        linewidth=0,
    )


def render_static_chart(frame: ShadowFrame, chart_size: int = 6) -> Figure:
    """Render a ShadowFrame as a static top-down diagram.

    Draws the outer and primary shadows of a single square footprint plus a
    marker on the side the light comes from. The y axis is inverted to match
    the screen convention of ``fill-translate``.

    Args:
        frame: Computed shadow frame.
        chart_size: Output image size in inches.

    Returns:
        matplotlib Figure object.
    """
    fig, ax = plt.subplots(figsize=(chart_size, chart_size))
    fig.patch.set_facecolor(_GROUND)
    ax.set_facecolor(_GROUND)

    ax.add_patch(_shadow_patch(frame.outer, frame.is_night))
    ax.add_patch(_shadow_patch(frame.primary, frame.is_night))
    ax.add_patch(
        Polygon(_FOOTPRINT, closed=True, facecolor=_BUILDING, edgecolor="#7d8a96")
    )

    if not frame.is_night:
        az = frame.sun.azimuthal_angle
        # y grows downward on screen: north is -y
        ax.scatter(
            [np.sin(az) * 180], [-np.cos(az) * 180], s=300, color=_SUN, zorder=3
        )

    limit = 200
    ax.set_xlim(-limit, limit)
    ax.set_ylim(-limit, limit)
    ax.invert_yaxis()
    ax.set_aspect("equal")
    ax.axis("off")

    status = "night" if frame.is_night else "day"
    ax.set_title(
        f"{frame.instant:%Y-%m-%d %H:%M} UTC · zoom {frame.viewport.zoom:.1f} · {status}",
        fontsize=9,
    )
    return fig


def save_static_chart(frame: ShadowFrame, output_path: Path | None = None) -> Path:
    """Save a ShadowFrame preview as a PNG file.

    Args:
        frame: Computed shadow frame.
        output_path: Destination path. Auto-generated under results/ if None.

    Returns:
        Path to the saved file.
    """
    if output_path is None:
        loc = frame.location
        when_str = frame.instant.strftime("%Y_%m_%d_%H_%M")
        filename = f"{loc.latitude:.4f}_{loc.longitude:.4f}__{when_str}.png"
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_static_chart(frame)
    fig.savefig(output_path, facecolor=_GROUND)
    plt.close(fig)
    return output_path
