from .poll_model import Poll
from .nomination_model import Nomination
from .vote_model import Vote

__all__ = ['Poll', 'Nomination', 'Vote']
