"""ANSI colour helpers for operator-facing output"""


class Colors:
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[0;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    RESET = '\033[0m'


class Console:
    """Prints coloured messages, or plain text when colour is disabled"""

    def __init__(self, color: bool = True, write=print):
        self.color = color
        self._write = write

    def paint(self, text: str, color: str) -> str:
        if not self.color:
            return text
        return f"{color}{text}{Colors.RESET}"

    def info(self, text: str):
        self._write(self.paint(text, Colors.BLUE))

    def success(self, text: str):
        self._write(self.paint(text, Colors.GREEN))

    def notice(self, text: str):
        self._write(self.paint(text, Colors.YELLOW))

    def error(self, text: str):
        self._write(self.paint(text, Colors.RED))

    def line(self, text: str):
        self._write(self.paint(text, Colors.CYAN))

    def plain(self, text: str = ''):
        self._write(text)
