# main.py
"""
Main entry point for the particle field.

This script orchestrates the whole lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and sizes the particle field to it.
4. Drives the field one frame at a time until the window closes.
5. Handles clean shutdown.
"""
import cProfile
import io
import logging
import pstats
import sys

from utils import setup_logging, load_config


def main(config_path: str = 'config.json'):
    """
    The main function to run the particle field.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Particle Field Starting ---")

    field_params = config.get('field', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from simulation import ParticleField
    from visualization import Visualizer

    # --- Component Initialization ---
    # The visualizer owns the window, so it decides the surface size.
    visualizer = Visualizer(vis_params)
    field = ParticleField(visualizer.canvas, field_params)
    field.initialize(visualizer.bounds, events=visualizer.events)
    field.start()

    log_throttle = run_params.get('log_throttle_steps', 300)
    max_steps = run_params.get('max_steps')
    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    running = True
    step_num = 0

    if profiler is not None:
        profiler.enable()
    while running:
        field.step()
        step_num += 1

        if not visualizer.draw():
            running = False

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Frame {step_num}: {len(field.particles)} particles.")
            logging.debug(
                f"Frame {step_num} | Pointer: {field.pointer} | "
                f"FPS: {visualizer.clock.get_fps():.1f}"
            )

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping.")
            running = False
    if profiler is not None:
        profiler.disable()

    visualizer.close()
    logging.info(f"Frame loop finished after {step_num} frames.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Field Shutting Down ---")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else 'config.json')
