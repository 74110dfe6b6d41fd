"""Cross-platform keyboard input handler for timer controls."""

import sys


class KeyboardHandler:
    """Non-blocking keyboard input handler."""

    def __init__(self):
        self.fd = sys.stdin.fileno()
        self.old_settings = None
        self._setup()

    def _setup(self):
        """Setup terminal for non-blocking input."""
        import termios
        import tty

        try:
            self.old_settings = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
        except termios.error:
            # Not a terminal (piped stdin)
            self.old_settings = None

    def get_key(self) -> str | None:
        """
        Get a single keypress without blocking.

        Returns the key character or None if no key pressed.
        """
        import select

        if select.select([sys.stdin], [], [], 0)[0]:
            key = sys.stdin.read(1)
            return key.lower() if key else None
        return None

    def stop(self):
        """Restore terminal settings."""
        if self.old_settings:
            import termios

            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.old_settings)
            self.old_settings = None


class WindowsKeyboardHandler:
    """Keyboard handler for Windows using msvcrt."""

    def __init__(self):
        import msvcrt

        self.msvcrt = msvcrt

    def get_key(self) -> str | None:
        """Get key on Windows."""
        if self.msvcrt.kbhit():
            key = self.msvcrt.getch()
            if isinstance(key, bytes):
                key = key.decode("utf-8", errors="ignore")
            return key.lower()
        return None

    def stop(self):
        """No cleanup needed on Windows."""


def get_keyboard_handler():
    """Keyboard handler for the current platform."""
    if sys.platform == "win32":
        return WindowsKeyboardHandler()
    return KeyboardHandler()
