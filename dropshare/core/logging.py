import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

def configure_logging(log_dir: str = "logs", level: str = "INFO"):
    """
    Send every dropshare.* module logger through the root logger to
    <log_dir>/app.log and the console. Does nothing if the root logger is
    already set up (uvicorn --log-config, pytest, a second create_app()).
    """
    root = logging.getLogger()
    if root.hasHandlers():
        return

    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    root.setLevel(lvl)

    os.makedirs(log_dir, exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT)
    for handler in (logging.FileHandler(os.path.join(log_dir, "app.log")), logging.StreamHandler()):
        handler.setFormatter(fmt)
        handler.setLevel(lvl)
        root.addHandler(handler)
