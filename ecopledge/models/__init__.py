from .user import User, UserBadge
from .commitment import Commitment, CommitmentLike
from .milestone import Milestone
from .progress_update import ProgressUpdate
from .comment import Comment
from .notification import Notification
from .challenge import Challenge, ChallengeParticipant
from .flag import Flag

__all__ = [
    "User",
    "UserBadge",
    "Commitment",
    "CommitmentLike",
    "Milestone",
    "ProgressUpdate",
    "Comment",
    "Notification",
    "Challenge",
    "ChallengeParticipant",
    "Flag",
]
