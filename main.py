"""main.py – command-line entry point: parse flags, set up logging, run the player."""

import argparse
import logging

import config


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Endless shuffled ambient clips")
    ap.add_argument("--clips", default=config.CLIPS_PATH,
                    help=f"clip folder (default: {config.CLIPS_PATH})")
    ap.add_argument("--stats-file", default=config.STATS_PATH,
                    help="where the stats JSON lives")
    ap.add_argument("--fullscreen", action="store_true")
    ap.add_argument("--audio", action="store_true",
                    help="play clip audio with crossfades")
    ap.add_argument("--port", type=int, default=config.WEB_PORT)
    ap.add_argument("--no-remote", action="store_true",
                    help="don't start the web remote")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="[%(name)s] %(message)s")

    config.CLIPS_PATH = args.clips
    config.STATS_PATH = args.stats_file
    config.FULLSCREEN = args.fullscreen or config.FULLSCREEN
    config.AUDIO_ENABLED = args.audio or config.AUDIO_ENABLED

    from app import AmbientApp
    app = AmbientApp(args.clips, args.stats_file)
    if not args.no_remote:
        import web_remote
        web_remote.start(app, args.port)
    app.run()


if __name__ == "__main__":
    main()
