"""linemud: a multi-user text world server over asyncio streams."""
# pylint: disable=wildcard-import,undefined-variable
from .world import *            # noqa
from .registry import *         # noqa
from .broadcast import *        # noqa
from .commands import *         # noqa
from .session import *          # noqa
from .stream_writer import *    # noqa
from .server_base import *      # noqa
from .server import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    world.__all__ +
    registry.__all__ +
    broadcast.__all__ +
    commands.__all__ +
    session.__all__ +
    stream_writer.__all__ +
    server_base.__all__ +
    server.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
