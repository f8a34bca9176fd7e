import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from datetime import datetime

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_dir=None, level=logging.INFO):
    """
    Configure the root logger: console always, plus a rotating file under
    ``log_dir`` when one is given. Returns the root logger.
    """
    # --- 1. Windows consoles default to cp1252 and choke on the persona text ---
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding='utf-8')
        sys.stderr.reconfigure(encoding='utf-8')

    log_formatter = logging.Formatter(LOG_FORMAT)

    # --- 2. Console handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(console_handler)

    # --- 3. File handler, one file per process start: dd-mm-yyyy HH-MM-SS.txt ---
    # Windows does not allow ':' in file names, hence H-M-S
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        current_time = datetime.now().strftime("%d-%m-%Y %H-%M-%S")
        log_file_path = os.path.join(log_dir, f"{current_time}.txt")

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

        root_logger.info(f"Log file created at: {log_file_path}")

    return root_logger
