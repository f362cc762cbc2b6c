"""Information about the platform this program runs on."""

import platform
import sys

_MACHINE = platform.machine().lower()

LINUX = sys.platform.startswith("linux")
MACOS = sys.platform == "darwin"
WINDOWS = sys.platform == "win32"

X86_64 = _MACHINE in {"x86_64", "amd64"}
X86 = _MACHINE in {"x86", "i386", "i486", "i586", "i686"}