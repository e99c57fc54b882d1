# wintweak/utils/system_utils.py
import subprocess
import sys
from wintweak.utils.logger_utils import logger


class SystemUtils:
    """A collection of static utility functions for OS-level process handling."""

    @staticmethod
    def _image_name(process_name: str) -> str:
        return process_name if process_name.lower().endswith(".exe") else f"{process_name}.exe"

    @staticmethod
    def is_process_running(process_name: str) -> bool:
        """Checks the Windows task list for a process image name (e.g. 'explorer')."""
        if sys.platform != "win32":
            return False

        image = SystemUtils._image_name(process_name)
        try:
            output = subprocess.run(
                ["tasklist", "/FI", f"IMAGENAME eq {image}", "/NH"],
                capture_output=True,
                text=True,
                check=False,
                creationflags=subprocess.CREATE_NO_WINDOW,
            ).stdout
        except OSError as e:
            logger.warning(f"Could not query task list for '{image}': {e}")
            return False
        return image.lower() in output.lower()

    @staticmethod
    def kill_process(process_name: str) -> bool:
        """Force-terminates every instance of a process. Returns True on success."""
        if sys.platform != "win32":
            return False

        image = SystemUtils._image_name(process_name)
        logger.info(f"Killing process: {image}")
        try:
            completed = subprocess.run(
                ["taskkill", "/F", "/IM", image],
                capture_output=True,
                text=True,
                check=False,
                creationflags=subprocess.CREATE_NO_WINDOW,
            )
        except OSError as e:
            logger.error(f"Failed to kill '{image}': {e}", exc_info=True)
            return False
        return completed.returncode == 0

    @staticmethod
    def start_process(executable: str) -> bool:
        """Starts a detached process (e.g. 'explorer.exe'). Returns True on success."""
        logger.info(f"Starting process: {executable}")
        try:
            subprocess.Popen([executable], close_fds=True)
            return True
        except OSError as e:
            logger.error(f"Failed to start '{executable}': {e}", exc_info=True)
            return False
