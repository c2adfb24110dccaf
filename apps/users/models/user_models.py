from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

import uuid

from .user_manager import FestUserManager


class FestUser(AbstractBaseUser, PermissionsMixin):
    '''
    Account used to sign in. What the account can do is decided by its role and
    the matching profile (Participant or Organizer).
    '''
    class RoleType(models.TextChoices):
        PARTICIPANT = "participant", _("Participant")
        ORGANIZER = "organizer", _("Organizer")
        ADMIN = "admin", _("Admin")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, verbose_name=_("email address"))
    role = models.CharField(max_length=20, choices=RoleType.choices, default=RoleType.PARTICIPANT, verbose_name=_("role"))

    is_active = models.BooleanField(default=True, verbose_name=_("active"))
    is_staff = models.BooleanField(default=False, verbose_name=_("staff status"))
    date_joined = models.DateTimeField(default=timezone.now, verbose_name=_("date joined"))

    objects = FestUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _("fest user")
        verbose_name_plural = _("fest users")
        ordering = ["email"]

    def __str__(self):
        return f"{self.email} ({self.role})"

    def get_full_name(self):
        profile = self.profile
        if isinstance(profile, Participant):
            return profile.get_full_name()
        if isinstance(profile, Organizer):
            return profile.name
        return self.email

    def get_short_name(self):
        return self.email

    @property
    def profile(self):
        '''
        Participant or Organizer profile for this account, None for admins and
        accounts whose profile was never created
        '''
        if self.role == self.RoleType.PARTICIPANT:
            return Participant.objects.filter(user=self).first()
        if self.role == self.RoleType.ORGANIZER:
            return Organizer.objects.filter(user=self).first()
        return None


class Participant(models.Model):
    class ParticipantType(models.TextChoices):
        IIIT = "IIIT", _("IIIT student")
        EXTERNAL = "EXTERNAL", _("External participant")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(FestUser, on_delete=models.CASCADE, related_name="participant_profile", verbose_name=_("user"))
    first_name = models.CharField(max_length=50, verbose_name=_("first name"))
    last_name = models.CharField(max_length=50, verbose_name=_("last name"))
    participant_type = models.CharField(max_length=10, choices=ParticipantType.choices, verbose_name=_("participant type"))
    college_name = models.CharField(max_length=200, blank=True, verbose_name=_("college / organisation"))
    contact_number = models.CharField(max_length=20, blank=True, verbose_name=_("contact number"))
    registered_events = models.ManyToManyField(
        "events.Event",
        related_name="registered_participants",
        blank=True,
        verbose_name=_("registered events"),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("participant")
        verbose_name_plural = _("participants")
        ordering = ["last_name", "first_name"]

    def __str__(self):
        return f"{self.get_full_name()} ({self.participant_type})"

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def email(self):
        return self.user.email


class Organizer(models.Model):
    class OrganizerType(models.TextChoices):
        CLUB = "club", _("Club")
        COUNCIL = "council", _("Council")
        FEST_TEAM = "fest_team", _("Fest team")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(FestUser, on_delete=models.CASCADE, related_name="organizer_profile", verbose_name=_("user"))
    name = models.CharField(max_length=200, verbose_name=_("name"))
    organizer_type = models.CharField(max_length=20, choices=OrganizerType.choices, default=OrganizerType.CLUB, verbose_name=_("organizer type"))
    category = models.CharField(max_length=100, blank=True, verbose_name=_("category"))
    description = models.TextField(blank=True, verbose_name=_("description"))
    contact_email = models.EmailField(blank=True, verbose_name=_("contact email"))
    is_active = models.BooleanField(default=True, verbose_name=_("active"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("organizer")
        verbose_name_plural = _("organizers")
        ordering = ["name"]

    def __str__(self):
        return self.name
