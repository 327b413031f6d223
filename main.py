# main.py
import os, logging, traceback, argparse

from utils.crashlog import setup_crashlog, log_exception, log_dir
from config import AppConfig, CanvasConfig, NoteConfig

def _init_logging(level=logging.INFO):
    logs = log_dir()
    log_path = os.path.join(logs, "app.log")

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        encoding="utf-8"
    )
    from logging.handlers import RotatingFileHandler
    fh = RotatingFileHandler(log_path, maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    logging.getLogger().addHandler(fh)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="glow-visualizer", description="MIDI-driven generative visuals")
    ap.add_argument('--width', type=int, default=CanvasConfig.window_w)
    ap.add_argument('--height', type=int, default=CanvasConfig.window_h)
    ap.add_argument('--fps', type=int, default=CanvasConfig.fps)
    ap.add_argument('--max-age-ms', type=float, default=NoteConfig.max_age_ms,
                    help='notes older than this are dropped even without note-off')
    ap.add_argument('--clear-alpha', type=float, default=CanvasConfig.clear_alpha,
                    help='per-frame fade, 1 = hard clear')
    ap.add_argument('--midi-file', default=None, help='play a .mid file (looped)')
    ap.add_argument('--port', action='append', default=[], help='MIDI input port name (repeatable)')
    ap.add_argument('--list-ports', action='store_true', help='print MIDI input ports and exit')
    ap.add_argument('--debug', action='store_true')
    return ap

def config_from_args(args) -> AppConfig:
    return AppConfig(
        canvas=CanvasConfig(window_w=args.width, window_h=args.height, fps=args.fps,
                            clear_alpha=max(0.0, min(1.0, args.clear_alpha))),
        notes=NoteConfig(max_age_ms=args.max_age_ms),
        midi_file=args.midi_file,
        ports=list(args.port),
    )

def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_crashlog()
    _init_logging(logging.DEBUG if args.debug else logging.INFO)

    if args.list_ports:
        from midi.ports import list_input_names
        for name in list_input_names():
            print(name)
        return 0

    logging.info("應用程式啟動")
    from app import App
    App(config_from_args(args)).run()
    return 0

if __name__ == '__main__':
    try:
        main()
    except Exception as e:
        log_exception("Top-level exception", e)
        logging.error("未捕捉的例外：%s", e, exc_info=True)
        print("程式發生錯誤，請到 logs/ 資料夾看 app.log 與 error-*.txt")
        traceback.print_exc()
