import pygame
import pytest

from particle import Bounds
from simulation import ParticleField
from visualization import EventRouter, SurfaceCanvas, Visualizer


# --- SurfaceCanvas ---

BLACK = (0, 0, 0)


def assert_color_close(actual, expected, tolerance=2):
    assert all(abs(a - e) <= tolerance for a, e in zip(tuple(actual)[:3], expected)), (actual, expected)


def test_new_canvas_is_filled_with_background():
    canvas = SurfaceCanvas(10, 10, (10, 20, 30))
    assert_color_close(canvas.surface.get_at((5, 5)), (10, 20, 30), tolerance=0)


def test_fill_circle_blends_over_background():
    canvas = SurfaceCanvas(100, 100, BLACK)
    canvas.fill_circle(50, 50, 5, (255, 0, 0), 0.5)
    assert_color_close(canvas.surface.get_at((50, 50)), (127, 0, 0))
    assert_color_close(canvas.surface.get_at((0, 0)), BLACK, tolerance=0)


def test_opaque_circle_is_drawn_exactly():
    canvas = SurfaceCanvas(40, 40, BLACK)
    canvas.fill_circle(20.5, 20.5, 6.0, (1, 2, 3), 1.0)
    assert_color_close(canvas.surface.get_at((20, 20)), (1, 2, 3), tolerance=1)


def test_faint_circle_keeps_opaque_one_underneath():
    canvas = SurfaceCanvas(60, 60, BLACK)
    canvas.fill_circle(30, 30, 10, (255, 0, 0), 1.0)
    canvas.fill_circle(30, 30, 10, (0, 0, 255), 0.1)

    r, g, b, a = canvas.surface.get_at((30, 30))
    assert r >= 220
    assert b <= 35
    assert a == 255


def test_faint_line_does_not_erase_particle():
    canvas = SurfaceCanvas(100, 100, BLACK)
    canvas.fill_circle(50, 50, 10, (255, 0, 0), 1.0)
    canvas.stroke_line(0, 50, 99, 50, (255, 255, 255), 0.02)

    r, g, b, a = canvas.surface.get_at((50, 50))
    assert r >= 250
    assert g <= 10 and b <= 10
    assert a == 255


def test_stroke_line_writes_pixels():
    canvas = SurfaceCanvas(100, 100, BLACK)
    canvas.stroke_line(0, 10, 99, 10, (0, 255, 0), 1.0)
    assert_color_close(canvas.surface.get_at((50, 10)), (0, 255, 0), tolerance=1)


def test_stroke_line_in_any_direction():
    canvas = SurfaceCanvas(100, 100, BLACK)
    canvas.stroke_line(90.0, 80.0, 10.0, 20.0, (0, 0, 255), 1.0)
    assert_color_close(canvas.surface.get_at((50, 50)), (0, 0, 255), tolerance=1)


def test_clear_restores_background():
    canvas = SurfaceCanvas(20, 20, (5, 5, 5))
    canvas.fill_circle(10, 10, 5, (200, 200, 200), 1.0)
    canvas.clear()
    assert_color_close(canvas.surface.get_at((10, 10)), (5, 5, 5), tolerance=0)


def test_resize_reallocates_layer():
    canvas = SurfaceCanvas(20, 20, (7, 8, 9))
    canvas.resize(64, 48)
    assert canvas.surface.get_size() == (64, 48)
    assert_color_close(canvas.surface.get_at((63, 47)), (7, 8, 9), tolerance=0)


def test_alpha_is_clamped():
    canvas = SurfaceCanvas(10, 10, BLACK)
    canvas.fill_circle(5, 5, 3, (90, 90, 90), 1.7)
    assert_color_close(canvas.surface.get_at((5, 5)), (90, 90, 90), tolerance=1)


def test_shapes_partly_off_canvas_are_clipped():
    canvas = SurfaceCanvas(20, 20, BLACK)
    canvas.fill_circle(-2.0, 19.5, 5.0, (255, 255, 255), 1.0)
    canvas.stroke_line(-30, 5, 50, 5, (255, 255, 255), 1.0)
    assert_color_close(canvas.surface.get_at((0, 19)), (255, 255, 255), tolerance=1)
    assert_color_close(canvas.surface.get_at((10, 5)), (255, 255, 255), tolerance=1)


# --- EventRouter ---

def test_router_dispatches_pointer_and_resize():
    router = EventRouter()
    seen = []
    router.subscribe('pointer_move', lambda x, y: seen.append(('move', x, y)))
    router.subscribe('pointer_leave', lambda: seen.append(('leave',)))
    router.subscribe('resize', lambda bounds: seen.append(('resize', bounds)))

    assert router.route(pygame.event.Event(pygame.MOUSEMOTION, pos=(10, 20), rel=(0, 0), buttons=(0, 0, 0)))
    assert router.route(pygame.event.Event(pygame.WINDOWLEAVE))
    assert router.route(pygame.event.Event(pygame.VIDEORESIZE, size=(640, 480), w=640, h=480))

    assert seen == [('move', 10, 20), ('leave',), ('resize', Bounds(640, 480))]


@pytest.mark.parametrize("event", [
    pygame.event.Event(pygame.QUIT),
    pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE),
])
def test_router_reports_shutdown(event):
    assert EventRouter().route(event) is False


def test_router_ignores_other_keys():
    assert EventRouter().route(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_SPACE)) is True


def test_router_rejects_unknown_kind():
    with pytest.raises(ValueError):
        EventRouter().subscribe('scroll', print)


def test_router_drives_field_reactions(canvas):
    router = EventRouter()
    field = ParticleField(canvas, {'seed': 0})
    field.initialize(Bounds(800, 600), events=router)

    router.route(pygame.event.Event(pygame.MOUSEMOTION, pos=(3, 4), rel=(0, 0), buttons=(0, 0, 0)))
    assert (field.pointer.x, field.pointer.y) == (3, 4)

    router.route(pygame.event.Event(pygame.WINDOWLEAVE))
    assert field.pointer is None

    router.route(pygame.event.Event(pygame.VIDEORESIZE, size=(400, 300), w=400, h=300))
    assert len(field.particles) == 4


# --- Visualizer (headless) ---

@pytest.fixture
def visualizer():
    vis = Visualizer({'fullscreen': False, 'width': 320, 'height': 240, 'fps': 1000})
    yield vis
    vis.close()


def test_visualizer_reports_surface_bounds(visualizer):
    assert visualizer.bounds == Bounds(320, 240)
    assert visualizer.canvas.surface.get_size() == (320, 240)


def test_visualizer_frame_and_quit(visualizer):
    field = ParticleField(visualizer.canvas, {'seed': 0, 'density': 1000})
    field.initialize(visualizer.bounds, events=visualizer.events)
    field.step()
    assert visualizer.draw() is True

    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert visualizer.draw() is False


def test_visualizer_resize_updates_canvas_before_field(visualizer):
    field = ParticleField(visualizer.canvas, {'seed': 0, 'density': 1000})
    field.initialize(visualizer.bounds, events=visualizer.events)

    visualizer.events.route(pygame.event.Event(pygame.VIDEORESIZE, size=(200, 100), w=200, h=100))

    assert visualizer.canvas.surface.get_size() == (200, 100)
    assert field.bounds == Bounds(200, 100)
    assert len(field.particles) == 20
