from .user_models import FestUser, Participant, Organizer
from .user_manager import FestUserManager
