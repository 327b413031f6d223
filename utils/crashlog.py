# utils/crashlog.py
import os, sys, faulthandler, datetime, traceback, threading
from typing import Callable, Dict, Optional

LOG_DIR_ENV = "GLOW_LOG_DIR"
_fault_file = None
# 回傳目前狀態（frame 數、開著的 port…），寫進每份報告
_state_provider: Optional[Callable[[], Dict[str, object]]] = None

def log_dir() -> str:
    d = os.environ.get(LOG_DIR_ENV) or os.path.join(os.getcwd(), "logs")
    os.makedirs(d, exist_ok=True)
    return d

def _report_path(kind: str) -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{kind}-{stamp}.txt")

def set_state_provider(provider: Optional[Callable[[], Dict[str, object]]]):
    global _state_provider
    _state_provider = provider

def _write_report(kind: str, header: str, exc_type, exc, tb, context: Dict[str, object] = None) -> str:
    path = _report_path(kind)
    lines = dict(context or {})
    if _state_provider is not None:
        try:
            lines.update(_state_provider())
        except Exception as e:
            lines["state"] = f"<unavailable: {e!r}>"
    with open(path, "w", encoding="utf-8") as out:
        out.write(header + "\n" + "=" * 60 + "\n")
        for k, v in lines.items():
            out.write(f"{k}: {v}\n")
        out.write("".join(traceback.format_exception(exc_type, exc, tb)))
    return path

def setup_crashlog():
    """Native faults -> native-*.txt; uncaught exceptions (main or threads) -> crash-*.txt."""
    global _fault_file
    try:
        if _fault_file is None:
            _fault_file = open(_report_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except OSError:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            _write_report("crash", "UNCAUGHT EXCEPTION", exc_type, exc, tb)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

    def _thread_hook(args):
        name = args.thread.name if args.thread is not None else "?"
        try:
            _write_report("crash", f"UNCAUGHT EXCEPTION IN THREAD {name}",
                          args.exc_type, args.exc_value, args.exc_traceback)
        finally:
            sys.__excepthook__(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook

def log_exception(title: str, exc: BaseException, **context) -> str:
    """Handled failure at an I/O boundary -> error-*.txt; returns the report path."""
    return _write_report("error", f"[{title}] {type(exc).__name__}: {exc}",
                         type(exc), exc, exc.__traceback__, context)
