__version__ = "0.1"

import logging

from .components import SLASH, Authority, Host, HostKind, Path, PathBuilder, Query, UriComponents, UserInfo
from .errors import InvalidPercentEscape, UnexpectedCharacter, UnterminatedBracket, UriError, UriParseError
from .parser import UriParser, parse_authority, parse_fragment, parse_path, parse_query
from .serializer import serialize
from .uri import Uri

logging.getLogger(__name__).addHandler(logging.NullHandler())
