"""
================================================================================
BOSS-Y CAMPUS NETWORK - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models defining the campus network schema
@version     1.0.0

MODULE PURPOSE
================================================================================
This module defines every table of the campus network:
- User model (extended from AbstractUser) with role and approval status
- Profile details (education, experience, social links, interests)
- Posts, likes and comments
- Clubs (groups) with members, join requests, discussions and chat
- Events with registrations
- Opportunities with applications
- Projects with join requests and team roles
- Portfolios and tutorials
- Admin audit log and bulk user uploads

DATABASE STRUCTURE
================================================================================
1. User & Profile
   - User, Education, Experience, SocialLinks, Interest

2. Feed
   - Post, PostLike, Comment

3. Clubs
   - Group, GroupMember, GroupJoinRequest, Discussion, GroupMessage

4. Campus Content
   - Event, EventRegistration
   - Opportunity, OpportunityApplication
   - Project, ProjectJoinRequest
   - Portfolio, Tutorial

5. Administration
   - AdminAction, BulkUserUpload, BulkUploadError

JOIN REQUEST STATUS
================================================================================
Group and project join requests share one two-state column:

    pending ──> approved
            └─> rejected

A decided request is never decided again.

================================================================================
"""

import re
from datetime import timedelta

import pytz
from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone as dj_timezone


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

TIMEZONE_CHOICES = [(tz, tz) for tz in pytz.all_timezones]

ROLE_ADMIN = 'admin'
ROLE_STUDENT = 'student'
ROLE_FACULTY = 'faculty'
ROLE_INVESTOR = 'investor'
ROLE_ALUMNI = 'alumni'

ROLE_CHOICES = [
    (ROLE_ADMIN, 'Admin'),
    (ROLE_STUDENT, 'Student'),
    (ROLE_FACULTY, 'Faculty'),
    (ROLE_INVESTOR, 'Investor'),
    (ROLE_ALUMNI, 'Alumni'),
]

# Roles a visitor may pick on the sign-up form
SIGNUP_ROLES = [ROLE_STUDENT, ROLE_FACULTY, ROLE_INVESTOR, ROLE_ALUMNI]

STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'

JOIN_REQUEST_STATUS_CHOICES = [
    (STATUS_PENDING, 'Pending'),
    (STATUS_APPROVED, 'Approved'),
    (STATUS_REJECTED, 'Rejected'),
]

YOUTUBE_ID_RE = re.compile(
    r'(?:youtu\.be/|youtube\.com/(?:embed/|v/|watch\?v=|watch\?.+&v=))([^&?/]+)'
)


# ============================================================================
# SECTION 1: USER & PROFILE MODELS
# ============================================================================

class CampusUserManager(UserManager):
    """
    User manager with the admin-side provisioning call.

    ``provision`` is what the admin "Add User" form and every row of a bulk
    upload end up calling. It creates an already-approved account.
    """

    def provision(self, email, password, name, role):
        """
        Create an approved user from admin-supplied values.

        Args:
            email (str): Login email, must be unused
            password (str): Initial password
            name (str): Display name
            role (str): One of ROLE_CHOICES

        Returns:
            User: The created user

        Raises:
            ValidationError: Any field missing or invalid, or email taken
        """
        email = (email or '').strip().lower()
        name = (name or '').strip()
        role = (role or '').strip().lower()
        password = '' if password is None else str(password)

        if not email:
            raise ValidationError("Email is required.")
        validate_email(email)
        if not name:
            raise ValidationError("Name is required.")
        if role not in dict(ROLE_CHOICES):
            raise ValidationError(f"Invalid role '{role}'.")
        if not password:
            raise ValidationError("Password is required.")
        if self.filter(email__iexact=email).exists():
            raise ValidationError(f"A user with email {email} already exists.")

        return self.create_user(
            username=email,
            email=email,
            password=password,
            name=name,
            role=role,
            is_approved=True,
        )


class User(AbstractUser):
    """
    Campus member profile.

    Extends Django's AbstractUser with the campus role, the admin approval
    flag and public profile fields. Self-registered users start unapproved
    and are held on the pending-approval page until an admin approves them.

    Attributes:
        email (EmailField): Unique login email
        name (CharField): Display name
        role (CharField): admin / student / faculty / investor / alumni
        is_approved (BooleanField): Set by an admin
        title (CharField): Headline shown under the name
        bio (TextField): Profile biography
        avatar (ImageField): Profile picture
        banner (ImageField): Profile banner
        timezone (CharField): Preferred display timezone

    Related Names:
        posts, comments, education, experiences, social_links, interests,
        owned_groups, group_memberships, events, opportunities, projects,
        portfolios, tutorials, admin_actions
    """

    email = models.EmailField(
        unique=True,
        help_text="Login email address"
    )
    name = models.CharField(
        max_length=150,
        help_text="Display name"
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT,
        help_text="Campus role"
    )
    is_approved = models.BooleanField(
        default=False,
        help_text="Approved by an admin"
    )
    title = models.CharField(
        max_length=150,
        blank=True,
        help_text="Headline, e.g. 'CS Undergraduate'"
    )
    bio = models.TextField(
        max_length=1000,
        blank=True,
        help_text="Profile biography"
    )
    avatar = models.ImageField(
        upload_to='avatars/',
        null=True,
        blank=True,
        help_text="Profile picture"
    )
    banner = models.ImageField(
        upload_to='banners/',
        null=True,
        blank=True,
        help_text="Profile banner image"
    )
    timezone = models.CharField(
        max_length=100,
        choices=TIMEZONE_CHOICES,
        default='UTC',
        help_text="User's preferred timezone for display"
    )

    objects = CampusUserManager()

    def __str__(self):
        return self.name or self.email or self.username

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN or self.is_superuser

    @property
    def can_use_site(self):
        """True once the account may see anything beyond the pending page."""
        return self.is_admin or self.is_approved

    @property
    def is_profile_complete(self):
        return bool(self.name and self.title and self.bio)


class Education(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='education'
    )
    school_name = models.CharField(max_length=255)
    pre_university_name = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} @ {self.school_name}"


class Experience(models.Model):
    """
    Work experience entry on a profile.

    end_date is empty for a current position.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='experiences'
    )
    industry = models.CharField(max_length=150)
    organization = models.CharField(max_length=255)
    position = models.CharField(max_length=255)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.position} at {self.organization}"


class SocialLinks(models.Model):
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='social_links'
    )
    linkedin_url = models.URLField(blank=True)
    x_url = models.URLField(blank=True)
    instagram_url = models.URLField(blank=True)
    website_url = models.URLField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'social links'


class Interest(models.Model):
    name = models.CharField(max_length=100, unique=True)
    category = models.CharField(max_length=100, blank=True)
    users = models.ManyToManyField(
        User,
        blank=True,
        related_name='interests'
    )

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


# ============================================================================
# SECTION 2: FEED MODELS (Posts, Likes, Comments)
# ============================================================================

class Post(models.Model):
    """
    Feed post, optionally scoped to a club.

    likes_count is a denormalised counter kept in step with PostLike rows by
    increment_likes() / decrement_likes(). Both use F() updates so two
    concurrent likes never lose an increment.

    Attributes:
        user (ForeignKey): Author
        content (TextField): Plain text; URLs are linkified when rendered
        image (ImageField): Optional picture
        group (ForeignKey): Club the post belongs to, None for the main feed
        likes_count (PositiveIntegerField): Number of likes
        created_at / updated_at (DateTimeField): Timestamps

    Example:
        post = Post.objects.create(user=request.user, content="Hello campus")
        liked, count = post.toggle_like(other_user)
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='posts',
        help_text="Author of this post"
    )
    content = models.TextField(
        blank=True,
        help_text="Post text content"
    )
    image = models.ImageField(
        upload_to='post_images/',
        null=True,
        blank=True,
        help_text="Optional attached image"
    )
    group = models.ForeignKey(
        'Group',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='posts',
        help_text="Club this post was made in"
    )
    likes_count = models.PositiveIntegerField(
        default=0,
        help_text="Cached number of likes"
    )
    created_at = models.DateTimeField(
        default=dj_timezone.now,
        db_index=True,
        help_text="Creation timestamp"
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.content[:50]}"

    @staticmethod
    def is_post_editable(created_at):
        """True while created_at is inside the configured edit window."""
        window = timedelta(minutes=settings.POST_EDIT_WINDOW_MINUTES)
        return dj_timezone.now() - created_at <= window

    @property
    def is_editable(self):
        return self.is_post_editable(self.created_at)

    def increment_likes(self):
        Post.objects.filter(pk=self.pk).update(likes_count=F('likes_count') + 1)
        self.refresh_from_db(fields=['likes_count'])
        return self.likes_count

    def decrement_likes(self):
        # Never below zero
        Post.objects.filter(pk=self.pk, likes_count__gt=0).update(
            likes_count=F('likes_count') - 1
        )
        self.refresh_from_db(fields=['likes_count'])
        return self.likes_count

    def toggle_like(self, user):
        """
        Like or unlike this post for ``user``.

        Returns:
            tuple: (liked: bool, likes_count: int) after the toggle
        """
        with transaction.atomic():
            deleted, _ = PostLike.objects.filter(post=self, user=user).delete()
            if deleted:
                return False, self.decrement_likes()
            _, created = PostLike.objects.get_or_create(post=self, user=user)
            if created:
                return True, self.increment_likes()
            self.refresh_from_db(fields=['likes_count'])
            return True, self.likes_count


class PostLike(models.Model):
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='likes'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='post_likes'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('post', 'user')


class Comment(models.Model):
    """
    Comment attached to exactly one of a post, a project or an opportunity.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments',
        help_text="Comment author"
    )
    content = models.TextField(
        help_text="Comment text content"
    )
    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='comments'
    )
    project = models.ForeignKey(
        'Project',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='comments'
    )
    opportunity = models.ForeignKey(
        'Opportunity',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='comments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.user}: {self.content[:40]}"


# ============================================================================
# SECTION 3: CLUB MODELS
# ============================================================================

class JoinRequest(models.Model):
    """
    Shared shape of group and project join requests.

    Attributes:
        status (CharField): pending / approved / rejected
        created_at / updated_at (DateTimeField): Timestamps
    """

    status = models.CharField(
        max_length=10,
        choices=JOIN_REQUEST_STATUS_CHOICES,
        default=STATUS_PENDING,
        help_text="Request status"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['created_at']

    @property
    def is_pending(self):
        return self.status == STATUS_PENDING

    def decide(self, status):
        """
        Move a pending request to approved or rejected.

        Raises:
            ValueError: status is not approved/rejected, or the request
                was already decided
        """
        if status not in (STATUS_APPROVED, STATUS_REJECTED):
            raise ValueError(f"Invalid status '{status}'")
        if not self.is_pending:
            raise ValueError(f"Request already {self.status}")
        self.status = status
        self.save(update_fields=['status', 'updated_at'])


class Group(models.Model):
    """
    Campus club.

    Public clubs can be joined directly. Private clubs take a join request
    that the creator approves or rejects. The creator is always a member.

    Attributes:
        name (CharField): Club name
        description (TextField): What the club is about
        banner (ImageField): Optional banner image
        creator (ForeignKey): Owner, the only one who manages requests
        is_private (BooleanField): Join by request only

    Related Names:
        memberships, join_requests, discussions, chat_messages, posts
    """

    name = models.CharField(
        max_length=150,
        help_text="Club name"
    )
    description = models.TextField(
        help_text="Club description"
    )
    banner = models.ImageField(
        upload_to='group_banners/',
        null=True,
        blank=True,
        help_text="Club banner image"
    )
    creator = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='owned_groups',
        help_text="User who created the club"
    )
    is_private = models.BooleanField(
        default=False,
        help_text="Membership by approved request only"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def is_member(self, user):
        if not user.is_authenticated:
            return False
        return self.memberships.filter(user=user).exists()

    def has_pending_request(self, user):
        return self.join_requests.filter(user=user, status=STATUS_PENDING).exists()


class GroupMember(models.Model):
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='group_memberships'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('group', 'user')

    def __str__(self):
        return f"{self.user} in {self.group}"


class GroupJoinRequest(JoinRequest):
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='join_requests'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='group_join_requests'
    )

    def decide(self, status):
        with transaction.atomic():
            super().decide(status)
            if status == STATUS_APPROVED:
                GroupMember.objects.get_or_create(group=self.group, user=self.user)


class Discussion(models.Model):
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='discussions'
    )
    creator = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='discussions'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.title


class GroupMessage(models.Model):
    """
    Chat line in a club's main chat (group set) or in one of its
    discussions (discussion set).
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='group_messages'
    )
    content = models.TextField()
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='chat_messages'
    )
    discussion = models.ForeignKey(
        Discussion,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='messages'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']


# ============================================================================
# SECTION 4: CAMPUS CONTENT MODELS
# ============================================================================

class Event(models.Model):
    """
    Campus event.

    registration_url is an optional external sign-up page. In-app
    registrations are EventRegistration rows, one per user.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='events',
        help_text="Organiser"
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    date = models.DateTimeField(help_text="When the event starts")
    location = models.CharField(max_length=255)
    banner = models.ImageField(upload_to='event_banners/', null=True, blank=True)
    registration_url = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']

    def __str__(self):
        return self.title

    @property
    def is_past(self):
        return self.date < dj_timezone.now()


class EventRegistration(models.Model):
    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name='registrations'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='event_registrations'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('event', 'user')


class Opportunity(models.Model):
    """
    Internship, research position, job or similar posting.

    An opportunity is closed once its deadline day has passed. Opportunities
    without a deadline never close.
    """

    TYPE_CHOICES = [
        ('internship', 'Internship'),
        ('research', 'Research Position'),
        ('mentorship', 'Mentorship Program'),
        ('job', 'Job'),
        ('scholarship', 'Scholarship'),
        ('other', 'Other'),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='opportunities'
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='internship')
    deadline = models.DateField(null=True, blank=True)
    application_link = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'opportunities'

    def __str__(self):
        return self.title

    @staticmethod
    def is_opportunity_closed(deadline):
        if deadline is None:
            return False
        return deadline < dj_timezone.localdate()

    @property
    def is_closed(self):
        return self.is_opportunity_closed(self.deadline)


class OpportunityApplication(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
    ]

    opportunity = models.ForeignKey(
        Opportunity,
        on_delete=models.CASCADE,
        related_name='applications'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='opportunity_applications'
    )
    message = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('opportunity', 'user')
        ordering = ['created_at']


class Project(models.Model):
    """
    Collaborative project owned by one user.

    The team is the owner plus every approved ProjectJoinRequest. Approved
    members carry a role (member or lead) that the owner can change.

    Attributes:
        user (ForeignKey): Owner
        title, description, category (CharField/TextField): Listing fields
        details (TextField): Longer write-up shown on the detail page
        banner (ImageField): Optional banner image
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='projects',
        help_text="Project owner"
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=100)
    details = models.TextField(blank=True)
    banner = models.ImageField(upload_to='project_banners/', null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def team(self):
        return self.join_requests.filter(status=STATUS_APPROVED).select_related('user')

    @property
    def pending_requests(self):
        return self.join_requests.filter(status=STATUS_PENDING).select_related('user')


class ProjectJoinRequest(JoinRequest):
    ROLE_MEMBER = 'member'
    ROLE_LEAD = 'lead'
    ROLE_CHOICES = [
        (ROLE_MEMBER, 'Member'),
        (ROLE_LEAD, 'Lead'),
    ]

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='join_requests'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='project_join_requests'
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_MEMBER)

    class Meta(JoinRequest.Meta):
        unique_together = ('project', 'user')


class Portfolio(models.Model):
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='portfolios'
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    file = models.FileField(upload_to='portfolios/', help_text="PDF document")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class Tutorial(models.Model):
    """Admin-authored tutorial, optionally with a YouTube video."""

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='tutorials'
    )
    title = models.CharField(max_length=200)
    content = models.TextField()
    category = models.CharField(max_length=100, blank=True)
    video_url = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def embed_url(self):
        return youtube_embed_url(self.video_url)


def youtube_embed_url(url):
    """
    Turn any common YouTube link into its embed URL.

    Returns None for empty or non-YouTube URLs.

    Example:
        youtube_embed_url("https://youtu.be/abc123")
        # 'https://www.youtube.com/embed/abc123'
    """
    if not url:
        return None
    match = YOUTUBE_ID_RE.search(url)
    if not match:
        return None
    return f"https://www.youtube.com/embed/{match.group(1)}"


# ============================================================================
# SECTION 5: ADMINISTRATION MODELS
# ============================================================================

class AdminAction(models.Model):
    """
    Audit-log row written whenever an admin performs a management operation.

    Attributes:
        admin (ForeignKey): Admin who acted
        action_type (CharField): e.g. 'approve_user', 'update_role', 'add_user'
        target_table (CharField): Table the target row lives in
        target_id (CharField): Primary key of the target row, as text
        details (JSONField): Free-form extra data
        created_at (DateTimeField): When it happened

    Example:
        AdminAction.log(request.user, 'update_role', 'profiles', user.pk,
                        {'new_role': 'faculty'})
    """

    admin = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='admin_actions',
        help_text="Admin who performed the action"
    )
    action_type = models.CharField(
        max_length=50,
        help_text="Action identifier, snake_case"
    )
    target_table = models.CharField(
        max_length=50,
        help_text="Table of the affected row"
    )
    target_id = models.CharField(
        max_length=64,
        help_text="Primary key of the affected row"
    )
    details = models.JSONField(
        null=True,
        blank=True,
        help_text="Extra context for the action"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.admin} {self.action_type} {self.target_table}#{self.target_id}"

    @classmethod
    def log(cls, admin, action_type, target_table, target_id, details=None):
        return cls.objects.create(
            admin=admin,
            action_type=action_type,
            target_table=target_table,
            target_id=str(target_id),
            details=details,
        )

    @property
    def action_label(self):
        return self.action_type.replace('_', ' ')


class BulkUserUpload(models.Model):
    """
    One spreadsheet submitted through the admin bulk upload form.

    Status goes pending -> processed or failed once every row was tried.
    """

    STATUS_PENDING = 'pending'
    STATUS_PROCESSED = 'processed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSED, 'Processed'),
        (STATUS_FAILED, 'Failed'),
    ]

    admin = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='bulk_uploads'
    )
    file_name = models.CharField(max_length=255)
    file = models.FileField(upload_to='bulk-uploads/', null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    processed_count = models.PositiveIntegerField(default=0)
    failed_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.file_name} ({self.status})"


class BulkUploadError(models.Model):
    upload = models.ForeignKey(
        BulkUserUpload,
        on_delete=models.CASCADE,
        related_name='errors'
    )
    row_number = models.PositiveIntegerField(
        help_text="Spreadsheet row, header is row 1; 0 for whole-file errors"
    )
    error_message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['row_number']


"""
================================================================================
END OF MODELS DEFINITION
================================================================================

DATABASE MIGRATION NOTES
================================================================================
After modifying models, run:
1. python manage.py makemigrations campus
2. python manage.py migrate

================================================================================
"""
