import json
import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.core.validators import URLValidator
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.http import FileResponse, Http404, HttpResponseRedirect, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.http import require_GET, require_POST

from . import chatbot
from .bulk_upload import process_upload, process_user_upload
from .decorators import admin_required
from .emails import send_approval_email, send_welcome_email
from .models import (
    ROLE_ADMIN, ROLE_CHOICES, SIGNUP_ROLES, STATUS_APPROVED, STATUS_PENDING,
    STATUS_REJECTED, TIMEZONE_CHOICES,
    AdminAction, BulkUserUpload, Comment, Discussion, Education, Event,
    EventRegistration, Experience, Group, GroupJoinRequest, GroupMember,
    GroupMessage, Interest, Opportunity, OpportunityApplication, Portfolio,
    Post, Project, ProjectJoinRequest, SocialLinks, Tutorial, User,
)
from .validators import (
    parse_iso_date, validate_image_upload, validate_pdf_upload,
    validate_required, validate_signup,
)


# Logger
logger = logging.getLogger(__name__)

CHATBOT_HISTORY_KEY = 'chatbot_history'
CHATBOT_HISTORY_TURNS = 10


def _flash_errors(request, errors):
    for error in errors:
        messages.error(request, error)


def _redirect_back(request, fallback, *args):
    """Redirect to ?next= / the referer when it is on this site, else ``fallback``."""
    target = request.POST.get('next') or request.META.get('HTTP_REFERER')
    if target and (target.startswith('/') and not target.startswith('//')
                   or target.startswith(request.build_absolute_uri('/'))):
        return HttpResponseRedirect(target)
    return redirect(fallback, *args)


def _validate_url(value):
    if not value:
        return []
    try:
        URLValidator()(value)
    except ValidationError:
        return [f"'{value}' is not a valid URL"]
    return []


def _parse_event_date(value):
    dt = parse_datetime((value or '').strip())
    if dt is not None and timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


# ============================================================================
# CORE PAGES & AUTHENTICATION
# ============================================================================

def index(request):
    if request.user.is_authenticated:
        return HttpResponseRedirect(reverse('feed'))
    return render(request, "campus/landing.html")


def register(request):
    if request.method == "POST":
        name = request.POST.get("name", "").strip()
        email = request.POST.get("email", "").strip().lower()
        password = request.POST.get("password", "")
        confirmation = request.POST.get("confirmation", "")
        role = request.POST.get("role", "")

        errors = validate_signup(name, email, password, role)
        if password != confirmation:
            errors.append("Passwords do not match")
        if not errors and User.objects.filter(email__iexact=email).exists():
            errors.append("Email already registered.")

        if errors:
            _flash_errors(request, errors)
            return render(request, "campus/auth/register.html", {
                "roles": SIGNUP_ROLES,
                "form": request.POST,
            })

        try:
            user = User.objects.create_user(
                username=email,
                email=email,
                password=password,
                name=name,
                role=role,
                is_approved=False,
            )
        except IntegrityError:
            messages.error(request, "Email already registered.")
            return render(request, "campus/auth/register.html", {"roles": SIGNUP_ROLES})

        send_welcome_email(user)
        logger.info("New %s account registered: %s", role, email)
        messages.success(request, "Account created. An admin will review it shortly.")
        return redirect('login')

    return render(request, "campus/auth/register.html", {"roles": SIGNUP_ROLES})


def login_view(request):
    if request.method == "POST":
        identifier = request.POST.get("identifier", "").strip()
        password = request.POST.get("password", "")

        # Try to find user by email or username
        user = (
            User.objects.filter(email__iexact=identifier).first()
            or User.objects.filter(username=identifier).first()
        )

        if user:
            if not user.is_active:
                messages.error(request, "This account has been deactivated.")
                return render(request, "campus/auth/login.html")
            user = authenticate(request, username=user.username, password=password)
            if user is not None:
                login(request, user)
                if not user.can_use_site:
                    return redirect('pending_approval')
                messages.success(request, "Login successful! Welcome back.")
                return redirect('feed')
            messages.error(request, "Invalid password.")
        else:
            messages.error(request, "No account found with that email.")

    return render(request, "campus/auth/login.html")


def logout_view(request):
    logout(request)
    return HttpResponseRedirect(reverse("index"))


@login_required
def pending_approval(request):
    if request.user.can_use_site:
        return redirect('feed')
    return render(request, "campus/auth/pending_approval.html")


# ============================================================================
# PROFILES & PEOPLE
# ============================================================================

@login_required
def my_profile(request):
    return redirect('user_profile', user_id=request.user.id)


@login_required
def user_profile(request, user_id):
    profile_user = get_object_or_404(User, id=user_id, is_active=True)
    social_links = SocialLinks.objects.filter(user=profile_user).first()
    is_own = profile_user == request.user

    context = {
        'profile_user': profile_user,
        'is_own_profile': is_own,
        'education': profile_user.education.all(),
        'experiences': profile_user.experiences.all(),
        'social_links': social_links,
        'interests': profile_user.interests.all(),
        'posts': profile_user.posts.filter(group__isnull=True)[:10],
        'projects': profile_user.projects.all(),
        'portfolios': profile_user.portfolios.all(),
    }
    if is_own:
        context['available_interests'] = Interest.objects.exclude(users=profile_user)
    return render(request, "campus/profile/profile.html", context)


@login_required
def edit_profile(request):
    user = request.user
    if request.method == "POST":
        name = request.POST.get('name', '').strip()
        tz = request.POST.get('timezone', 'UTC')
        avatar = request.FILES.get('avatar')
        banner = request.FILES.get('banner')

        errors = []
        if len(name) < 2:
            errors.append("Name must be at least 2 characters long")
        if tz not in dict(TIMEZONE_CHOICES):
            errors.append("Unknown timezone")
        errors += validate_image_upload(avatar) + validate_image_upload(banner)

        if errors:
            _flash_errors(request, errors)
        else:
            user.name = name
            user.title = request.POST.get('title', '').strip()
            user.bio = request.POST.get('bio', '').strip()
            user.timezone = tz
            if avatar:
                user.avatar = avatar
            if banner:
                user.banner = banner
            user.save()
            messages.success(request, "Profile updated successfully")
            return redirect('user_profile', user_id=user.id)

    return render(request, "campus/profile/edit_profile.html", {
        'timezone_choices': TIMEZONE_CHOICES,
    })


@login_required
@require_POST
def add_education(request):
    errors = validate_required(request.POST, 'school_name')
    if errors:
        _flash_errors(request, errors)
    else:
        Education.objects.create(
            user=request.user,
            school_name=request.POST['school_name'].strip(),
            pre_university_name=request.POST.get('pre_university_name', '').strip(),
        )
        messages.success(request, "Education added successfully")
    return redirect('my_profile')


@login_required
@require_POST
def delete_education(request, education_id):
    get_object_or_404(Education, id=education_id, user=request.user).delete()
    messages.success(request, "Education removed")
    return redirect('my_profile')


@login_required
@require_POST
def add_experience(request):
    errors = validate_required(request.POST, 'industry', 'organization', 'position', 'start_date')
    start_date = parse_iso_date(request.POST.get('start_date'))
    end_date = parse_iso_date(request.POST.get('end_date'))
    if request.POST.get('start_date') and start_date is None:
        errors.append("Start date is not a valid date")
    if start_date and end_date and end_date < start_date:
        errors.append("End date cannot be before start date")

    if errors:
        _flash_errors(request, errors)
    else:
        Experience.objects.create(
            user=request.user,
            industry=request.POST['industry'].strip(),
            organization=request.POST['organization'].strip(),
            position=request.POST['position'].strip(),
            start_date=start_date,
            end_date=end_date,
        )
        messages.success(request, "Experience added successfully")
    return redirect('my_profile')


@login_required
@require_POST
def delete_experience(request, experience_id):
    get_object_or_404(Experience, id=experience_id, user=request.user).delete()
    messages.success(request, "Experience removed")
    return redirect('my_profile')


@login_required
@require_POST
def update_social_links(request):
    fields = ('linkedin_url', 'x_url', 'instagram_url', 'website_url')
    values = {f: request.POST.get(f, '').strip() for f in fields}
    errors = []
    for value in values.values():
        errors += _validate_url(value)
    if errors:
        _flash_errors(request, errors)
    else:
        SocialLinks.objects.update_or_create(user=request.user, defaults=values)
        messages.success(request, "Social links updated")
    return redirect('my_profile')


@login_required
@require_POST
def add_interest(request):
    interest_id = request.POST.get('interest_id', '')
    if not interest_id.isdigit():
        messages.error(request, "Please choose an interest")
        return redirect('my_profile')
    interest = get_object_or_404(Interest, id=interest_id)
    interest.users.add(request.user)
    return redirect('my_profile')


@login_required
@require_POST
def remove_interest(request, interest_id):
    interest = get_object_or_404(Interest, id=interest_id)
    interest.users.remove(request.user)
    return redirect('my_profile')


@login_required
def people(request):
    query = request.GET.get('q', '').strip()
    role = request.GET.get('role', '').strip()

    users = User.objects.filter(is_active=True).filter(
        Q(is_approved=True) | Q(role=ROLE_ADMIN)
    ).exclude(id=request.user.id).order_by('name')
    if query:
        users = users.filter(name__icontains=query)
    if role in dict(ROLE_CHOICES):
        users = users.filter(role=role)

    page_obj = Paginator(users, 24).get_page(request.GET.get('page'))
    return render(request, "campus/people.html", {
        'page_obj': page_obj,
        'query': query,
        'role': role,
        'role_choices': ROLE_CHOICES,
    })


# ============================================================================
# POSTS & FEED
# ============================================================================

@login_required
def feed(request):
    user = request.user
    if not user.is_admin and not user.is_profile_complete:
        messages.info(request, "Complete Your Profile: please add your details to get started.")
        return redirect('edit_profile')

    posts = Post.objects.filter(group__isnull=True).select_related('user').prefetch_related(
        'comments__user'
    )
    page_obj = Paginator(posts, 10).get_page(request.GET.get('page'))

    page_obj.object_list = list(page_obj.object_list)
    liked_ids = set(
        user.post_likes.filter(
            post_id__in=[post.id for post in page_obj.object_list]
        ).values_list('post_id', flat=True)
    )
    for post in page_obj.object_list:
        post.has_liked = post.id in liked_ids

    return render(request, "campus/feed.html", {'page_obj': page_obj})


@login_required
@require_POST
def new_post(request):
    content = request.POST.get('content', '').strip()
    image = request.FILES.get('image')
    group_id = request.POST.get('group_id')

    group = None
    if group_id:
        group = get_object_or_404(Group, id=group_id)
        if not (group.creator_id == request.user.id or group.is_member(request.user)):
            messages.error(request, "Only club members can post here.")
            return redirect('club_detail', group_id=group.id)

    errors = validate_image_upload(image)
    if not content and not image:
        errors.append("Post cannot be empty")

    if errors:
        _flash_errors(request, errors)
    else:
        Post.objects.create(user=request.user, content=content, image=image, group=group)
        messages.success(request, "Post created successfully")

    if group:
        return redirect('club_detail', group_id=group.id)
    return redirect('feed')


@login_required
@require_POST
def toggle_like(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    liked, likes_count = post.toggle_like(request.user)
    return JsonResponse({"liked": liked, "likes_count": likes_count})


@login_required
def edit_post(request, post_id):
    post = get_object_or_404(Post, id=post_id, user=request.user)
    if request.method != "PUT":
        return JsonResponse({"error": "PUT request required"}, status=400)
    if not post.is_editable:
        return JsonResponse({
            "error": f"Posts can only be edited within {settings.POST_EDIT_WINDOW_MINUTES} minutes of posting"
        }, status=403)

    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({"error": "Expected a JSON object"}, status=400)

    content = str(data.get('content') or '').strip()
    if not content and not post.image:
        return JsonResponse({"error": "Content cannot be empty"}, status=400)
    post.content = content
    post.save(update_fields=['content', 'updated_at'])
    return JsonResponse({
        "message": "Post updated",
        "content": post.content,
        "content_html": render_to_string("campus/_post_content.html", {"post": post}),
    })


@login_required
@require_POST
def delete_post(request, post_id):
    post = get_object_or_404(Post, id=post_id, user=request.user)
    if post.image:
        post.image.delete(save=False)
    post.delete()
    return JsonResponse({"message": "Post deleted"})


def _add_comment(request, fallback, fallback_args, **target):
    content = request.POST.get('content', '').strip()
    if not content:
        messages.error(request, "Comment cannot be empty.")
    else:
        Comment.objects.create(user=request.user, content=content, **target)
    return _redirect_back(request, fallback, *fallback_args)


@login_required
@require_POST
def add_post_comment(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    return _add_comment(request, 'feed', (), post=post)


@login_required
@require_POST
def delete_comment(request, comment_id):
    try:
        comment = Comment.objects.get(id=comment_id, user=request.user)
    except Comment.DoesNotExist:
        return JsonResponse({"error": "Comment not found or not yours"}, status=404)
    comment.delete()
    return JsonResponse({"message": "Comment deleted"})


# ============================================================================
# CLUBS
# ============================================================================

@login_required
def clubs(request):
    query = request.GET.get('q', '').strip()
    groups = Group.objects.annotate(
        member_count=Count('memberships', distinct=True),
        discussion_count=Count('discussions', distinct=True),
    ).order_by('-created_at', '-id')
    if query:
        groups = groups.filter(Q(name__icontains=query) | Q(description__icontains=query))

    member_of = set(request.user.group_memberships.values_list('group_id', flat=True))
    requested = set(
        request.user.group_join_requests.filter(status=STATUS_PENDING).values_list('group_id', flat=True)
    )
    for group in groups:
        group.viewer_is_member = group.id in member_of
        group.viewer_is_creator = group.creator_id == request.user.id
        group.viewer_has_requested = group.id in requested

    return render(request, "campus/clubs/clubs.html", {'groups': groups, 'query': query})


@login_required
def create_club(request):
    if request.method == "POST":
        banner = request.FILES.get('banner')
        errors = validate_required(request.POST, 'name', 'description') + validate_image_upload(banner)
        if errors:
            _flash_errors(request, errors)
        else:
            with transaction.atomic():
                group = Group.objects.create(
                    name=request.POST['name'].strip(),
                    description=request.POST['description'].strip(),
                    banner=banner,
                    creator=request.user,
                    is_private=request.POST.get('is_private') == 'on',
                )
                GroupMember.objects.create(group=group, user=request.user)
            messages.success(request, "Club created successfully")
            return redirect('club_detail', group_id=group.id)
    return render(request, "campus/clubs/club_form.html")


@login_required
def club_detail(request, group_id):
    group = get_object_or_404(Group.objects.select_related('creator'), id=group_id)
    is_creator = group.creator_id == request.user.id
    is_member = is_creator or group.is_member(request.user)
    # Private clubs show only their header to outsiders
    can_view = is_member or not group.is_private

    context = {
        'group': group,
        'is_creator': is_creator,
        'is_member': is_member,
        'can_view': can_view,
        'has_requested': group.has_pending_request(request.user),
        'member_count': group.memberships.count(),
    }

    if can_view:
        context.update({
            'posts': group.posts.select_related('user'),
            'members': group.memberships.select_related('user'),
            'discussions': group.discussions.all(),
        })

    if is_member:
        discussion = None
        discussion_id = request.GET.get('discussion')
        if discussion_id:
            discussion = get_object_or_404(Discussion, id=discussion_id, group=group)
        chat = discussion.messages.all() if discussion else group.chat_messages.all()
        context.update({
            'selected_discussion': discussion,
            'chat_messages': chat.select_related('user'),
        })
        if is_creator:
            context['join_requests'] = group.join_requests.filter(
                status=STATUS_PENDING
            ).select_related('user')

    return render(request, "campus/clubs/club_detail.html", context)


@login_required
@require_POST
def join_club(request, group_id):
    group = get_object_or_404(Group, id=group_id)

    if group.is_member(request.user):
        messages.info(request, "You are already a member of this club.")
    elif not group.is_private:
        GroupMember.objects.get_or_create(group=group, user=request.user)
        messages.success(request, "You have joined the club")
    elif group.has_pending_request(request.user):
        messages.error(request, "You already have a pending request for this club.")
    else:
        GroupJoinRequest.objects.create(group=group, user=request.user)
        messages.success(request, "Join request sent successfully")
    return redirect('club_detail', group_id=group.id)


@login_required
@require_POST
def leave_club(request, group_id):
    group = get_object_or_404(Group, id=group_id)
    if group.creator_id == request.user.id:
        messages.error(request, "The club creator cannot leave the club.")
        return redirect('club_detail', group_id=group.id)
    GroupMember.objects.filter(group=group, user=request.user).delete()
    messages.success(request, f"You left {group.name}.")
    return redirect('clubs')


@login_required
@require_POST
def toggle_club_privacy(request, group_id):
    group = get_object_or_404(Group, id=group_id, creator=request.user)
    group.is_private = not group.is_private
    group.save(update_fields=['is_private', 'updated_at'])
    messages.success(request, f"Club is now {'private' if group.is_private else 'public'}")
    return redirect('club_detail', group_id=group.id)


@login_required
@require_POST
def decide_club_request(request, request_id):
    join_request = get_object_or_404(
        GroupJoinRequest.objects.select_related('group'),
        id=request_id,
        group__creator=request.user,
    )
    status = request.POST.get('status', STATUS_APPROVED)
    try:
        join_request.decide(status)
    except ValueError as exc:
        messages.error(request, str(exc))
    else:
        messages.success(request, f"Request {status} successfully")
    return redirect('club_detail', group_id=join_request.group_id)


@login_required
@require_POST
def create_discussion(request, group_id):
    group = get_object_or_404(Group, id=group_id, creator=request.user)
    errors = validate_required(request.POST, 'title')
    if errors:
        _flash_errors(request, errors)
        return redirect('club_detail', group_id=group.id)

    discussion = Discussion.objects.create(
        group=group,
        creator=request.user,
        title=request.POST['title'].strip(),
        description=request.POST.get('description', '').strip(),
    )
    messages.success(request, "Discussion created successfully")
    return redirect(f"{reverse('club_detail', args=[group.id])}?discussion={discussion.id}")


@login_required
@require_POST
def send_club_message(request, group_id):
    group = get_object_or_404(Group, id=group_id)
    if not (group.creator_id == request.user.id or group.is_member(request.user)):
        messages.error(request, "Only club members can send messages.")
        return redirect('club_detail', group_id=group.id)

    discussion = None
    discussion_id = request.POST.get('discussion_id')
    if discussion_id:
        discussion = get_object_or_404(Discussion, id=discussion_id, group=group)

    content = request.POST.get('content', '').strip()
    if content:
        GroupMessage.objects.create(
            user=request.user,
            content=content,
            group=None if discussion else group,
            discussion=discussion,
        )

    url = reverse('club_detail', args=[group.id])
    if discussion:
        url += f"?discussion={discussion.id}"
    return redirect(url)


# ============================================================================
# EVENTS
# ============================================================================

@login_required
def events(request):
    query = request.GET.get('q', '').strip()
    event_list = Event.objects.select_related('user').annotate(
        registration_count=Count('registrations')
    ).order_by('date', 'id')
    if query:
        event_list = event_list.filter(
            Q(title__icontains=query) | Q(description__icontains=query) | Q(location__icontains=query)
        )
    return render(request, "campus/events/events.html", {'events': event_list, 'query': query})


def _event_form_errors(request):
    errors = validate_required(request.POST, 'title', 'description', 'date', 'location')
    if request.POST.get('date') and _parse_event_date(request.POST['date']) is None:
        errors.append("Date is not a valid date and time")
    errors += _validate_url(request.POST.get('registration_url', '').strip())
    errors += validate_image_upload(request.FILES.get('banner'))
    return errors


def _apply_event_form(request, event):
    event.title = request.POST['title'].strip()
    event.description = request.POST['description'].strip()
    event.date = _parse_event_date(request.POST['date'])
    event.location = request.POST['location'].strip()
    event.registration_url = request.POST.get('registration_url', '').strip()
    if request.FILES.get('banner'):
        event.banner = request.FILES['banner']
    event.save()
    return event


@login_required
def create_event(request):
    if request.method == "POST":
        errors = _event_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            event = _apply_event_form(request, Event(user=request.user))
            messages.success(request, "Event created successfully")
            return redirect('event_detail', event_id=event.id)
    return render(request, "campus/events/event_form.html", {'event': None})


@login_required
def edit_event(request, event_id):
    event = get_object_or_404(Event, id=event_id, user=request.user)
    if request.method == "POST":
        errors = _event_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            _apply_event_form(request, event)
            messages.success(request, "Event updated successfully")
            return redirect('event_detail', event_id=event.id)
    return render(request, "campus/events/event_form.html", {'event': event})


@login_required
def event_detail(request, event_id):
    event = get_object_or_404(Event.objects.select_related('user'), id=event_id)
    return render(request, "campus/events/event_detail.html", {
        'event': event,
        'is_owner': event.user_id == request.user.id,
        'is_registered': event.registrations.filter(user=request.user).exists(),
        'registration_count': event.registrations.count(),
        'registrations': event.registrations.select_related('user') if event.user_id == request.user.id else None,
    })


@login_required
@require_POST
def delete_event(request, event_id):
    event = get_object_or_404(Event, id=event_id, user=request.user)
    event.delete()
    messages.success(request, "Event deleted successfully")
    return redirect('events')


@login_required
@require_POST
def register_event(request, event_id):
    event = get_object_or_404(Event, id=event_id)
    if event.is_past:
        messages.error(request, "Registration is closed for past events.")
    else:
        _, created = EventRegistration.objects.get_or_create(event=event, user=request.user)
        if created:
            messages.success(request, "You have successfully registered for this event.")
        else:
            messages.info(request, "You are already registered for this event.")
    return redirect('event_detail', event_id=event.id)


@login_required
@require_POST
def unregister_event(request, event_id):
    event = get_object_or_404(Event, id=event_id)
    EventRegistration.objects.filter(event=event, user=request.user).delete()
    messages.success(request, "Your registration was cancelled.")
    return redirect('event_detail', event_id=event.id)


# ============================================================================
# OPPORTUNITIES
# ============================================================================

@login_required
def opportunities(request):
    query = request.GET.get('q', '').strip()
    opp_type = request.GET.get('type', '').strip()

    opportunity_list = Opportunity.objects.select_related('user')
    if query:
        opportunity_list = opportunity_list.filter(
            Q(title__icontains=query) | Q(description__icontains=query)
        )
    if opp_type in dict(Opportunity.TYPE_CHOICES):
        opportunity_list = opportunity_list.filter(type=opp_type)

    return render(request, "campus/opportunities/opportunities.html", {
        'opportunities': opportunity_list,
        'query': query,
        'type': opp_type,
        'type_choices': Opportunity.TYPE_CHOICES,
    })


def _opportunity_form_errors(request):
    errors = validate_required(request.POST, 'title', 'description', 'type')
    if request.POST.get('type') and request.POST['type'] not in dict(Opportunity.TYPE_CHOICES):
        errors.append("Invalid opportunity type")
    if request.POST.get('deadline') and parse_iso_date(request.POST['deadline']) is None:
        errors.append("Deadline is not a valid date")
    errors += _validate_url(request.POST.get('application_link', '').strip())
    return errors


def _apply_opportunity_form(request, opportunity):
    opportunity.title = request.POST['title'].strip()
    opportunity.description = request.POST['description'].strip()
    opportunity.type = request.POST['type']
    opportunity.deadline = parse_iso_date(request.POST.get('deadline'))
    opportunity.application_link = request.POST.get('application_link', '').strip()
    opportunity.save()
    return opportunity


@login_required
def create_opportunity(request):
    if request.method == "POST":
        errors = _opportunity_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            opportunity = _apply_opportunity_form(request, Opportunity(user=request.user))
            messages.success(request, "Opportunity posted successfully")
            return redirect('opportunity_detail', opportunity_id=opportunity.id)
    return render(request, "campus/opportunities/opportunity_form.html", {
        'opportunity': None,
        'type_choices': Opportunity.TYPE_CHOICES,
    })


@login_required
def edit_opportunity(request, opportunity_id):
    opportunity = get_object_or_404(Opportunity, id=opportunity_id, user=request.user)
    if request.method == "POST":
        errors = _opportunity_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            _apply_opportunity_form(request, opportunity)
            messages.success(request, "Opportunity updated successfully")
            return redirect('opportunity_detail', opportunity_id=opportunity.id)
    return render(request, "campus/opportunities/opportunity_form.html", {
        'opportunity': opportunity,
        'type_choices': Opportunity.TYPE_CHOICES,
    })


@login_required
def opportunity_detail(request, opportunity_id):
    opportunity = get_object_or_404(Opportunity.objects.select_related('user'), id=opportunity_id)
    is_owner = opportunity.user_id == request.user.id
    return render(request, "campus/opportunities/opportunity_detail.html", {
        'opportunity': opportunity,
        'is_owner': is_owner,
        'application': opportunity.applications.filter(user=request.user).first(),
        'applications': opportunity.applications.select_related('user') if is_owner else None,
        'comments': opportunity.comments.select_related('user'),
    })


@login_required
@require_POST
def delete_opportunity(request, opportunity_id):
    opportunity = get_object_or_404(Opportunity, id=opportunity_id, user=request.user)
    opportunity.delete()
    messages.success(request, "Opportunity deleted successfully")
    return redirect('opportunities')


@login_required
@require_POST
def apply_opportunity(request, opportunity_id):
    opportunity = get_object_or_404(Opportunity, id=opportunity_id)

    if opportunity.user_id == request.user.id:
        messages.error(request, "You cannot apply to your own opportunity.")
    elif opportunity.is_closed:
        messages.error(request, "This opportunity is closed.")
    elif opportunity.applications.filter(user=request.user).exists():
        messages.info(request, "You have already applied.")
    else:
        OpportunityApplication.objects.create(
            opportunity=opportunity,
            user=request.user,
            message=request.POST.get('message', '').strip(),
        )
        messages.success(request, "Application submitted successfully")
    return redirect('opportunity_detail', opportunity_id=opportunity.id)


@login_required
@require_POST
def decide_application(request, application_id):
    application = get_object_or_404(
        OpportunityApplication, id=application_id, opportunity__user=request.user
    )
    status = request.POST.get('status')
    if status not in ('accepted', 'rejected'):
        messages.error(request, "Invalid status")
    else:
        application.status = status
        application.save(update_fields=['status', 'updated_at'])
        messages.success(request, f"Application {status}")
    return redirect('opportunity_detail', opportunity_id=application.opportunity_id)


@login_required
@require_POST
def add_opportunity_comment(request, opportunity_id):
    opportunity = get_object_or_404(Opportunity, id=opportunity_id)
    return _add_comment(request, 'opportunity_detail', (opportunity.id,), opportunity=opportunity)


# ============================================================================
# PROJECTS
# ============================================================================

@login_required
def projects(request):
    query = request.GET.get('q', '').strip()
    project_list = Project.objects.select_related('user').annotate(
        member_count=Count('join_requests', filter=Q(join_requests__status=STATUS_APPROVED))
    ).order_by('-created_at', '-id')
    if query:
        project_list = project_list.filter(
            Q(title__icontains=query) | Q(description__icontains=query) | Q(category__icontains=query)
        )

    requested = set(request.user.project_join_requests.values_list('project_id', flat=True))
    for project in project_list:
        project.viewer_has_requested = project.id in requested

    return render(request, "campus/projects/projects.html", {'projects': project_list, 'query': query})


def _project_form_errors(request):
    return (
        validate_required(request.POST, 'title', 'description', 'category')
        + validate_image_upload(request.FILES.get('banner'))
    )


def _apply_project_form(request, project):
    project.title = request.POST['title'].strip()
    project.description = request.POST['description'].strip()
    project.category = request.POST['category'].strip()
    project.details = request.POST.get('details', '').strip()
    if request.FILES.get('banner'):
        project.banner = request.FILES['banner']
    project.save()
    return project


@login_required
def create_project(request):
    if request.method == "POST":
        errors = _project_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            project = _apply_project_form(request, Project(user=request.user))
            messages.success(request, "Project created successfully")
            return redirect('project_detail', project_id=project.id)
    return render(request, "campus/projects/project_form.html", {'project': None})


@login_required
def edit_project(request, project_id):
    project = get_object_or_404(Project, id=project_id, user=request.user)
    if request.method == "POST":
        errors = _project_form_errors(request)
        if errors:
            _flash_errors(request, errors)
        else:
            _apply_project_form(request, project)
            messages.success(request, "Project updated successfully")
            return redirect('project_detail', project_id=project.id)
    return render(request, "campus/projects/project_form.html", {'project': project})


@login_required
def project_detail(request, project_id):
    project = get_object_or_404(Project.objects.select_related('user'), id=project_id)
    is_owner = project.user_id == request.user.id
    return render(request, "campus/projects/project_detail.html", {
        'project': project,
        'is_owner': is_owner,
        'team': project.team,
        'pending_requests': project.pending_requests if is_owner else None,
        'my_request': project.join_requests.filter(user=request.user).first(),
        'role_choices': ProjectJoinRequest.ROLE_CHOICES,
        'comments': project.comments.select_related('user'),
    })


@login_required
@require_POST
def delete_project(request, project_id):
    project = get_object_or_404(Project, id=project_id, user=request.user)
    project.delete()
    messages.success(request, "Project deleted successfully")
    return redirect('projects')


@login_required
@require_POST
def request_join_project(request, project_id):
    project = get_object_or_404(Project, id=project_id)
    if project.user_id == request.user.id:
        messages.error(request, "You own this project.")
    elif project.join_requests.filter(user=request.user).exists():
        messages.info(request, "You have already requested to join this project.")
    else:
        ProjectJoinRequest.objects.create(project=project, user=request.user)
        messages.success(request, "Join request sent successfully")
    return _redirect_back(request, 'project_detail', project.id)


@login_required
@require_POST
def decide_project_request(request, request_id):
    join_request = get_object_or_404(
        ProjectJoinRequest, id=request_id, project__user=request.user
    )
    status = request.POST.get('status')
    try:
        join_request.decide(status)
    except ValueError as exc:
        messages.error(request, str(exc))
    else:
        messages.success(request, f"Request {status} successfully")
    return redirect('project_detail', project_id=join_request.project_id)


@login_required
@require_POST
def set_member_role(request, request_id):
    join_request = get_object_or_404(
        ProjectJoinRequest, id=request_id, project__user=request.user, status=STATUS_APPROVED
    )
    role = request.POST.get('role')
    if role not in dict(ProjectJoinRequest.ROLE_CHOICES):
        messages.error(request, "Invalid role")
    else:
        join_request.role = role
        join_request.save(update_fields=['role', 'updated_at'])
        messages.success(request, f"{join_request.user} is now a project {role}")
    return redirect('project_detail', project_id=join_request.project_id)


@login_required
@require_POST
def remove_project_member(request, request_id):
    join_request = get_object_or_404(
        ProjectJoinRequest.objects.select_related('project'),
        Q(project__user=request.user) | Q(user=request.user),
        id=request_id,
    )
    project_id = join_request.project_id
    leaving = join_request.user_id == request.user.id
    join_request.delete()
    messages.success(request, "You left the project" if leaving else "Member removed")
    return redirect('project_detail', project_id=project_id)


@login_required
@require_POST
def add_project_comment(request, project_id):
    project = get_object_or_404(Project, id=project_id)
    return _add_comment(request, 'project_detail', (project.id,), project=project)


# ============================================================================
# PORTFOLIOS
# ============================================================================

@login_required
def portfolios(request):
    portfolio_list = Portfolio.objects.select_related('user')
    return render(request, "campus/portfolios/portfolios.html", {'portfolios': portfolio_list})


@login_required
def upload_portfolio(request):
    if request.method == "POST":
        upload = request.FILES.get('file')
        errors = validate_required(request.POST, 'title', 'description') + validate_pdf_upload(upload)
        if errors:
            _flash_errors(request, errors)
        else:
            Portfolio.objects.create(
                user=request.user,
                title=request.POST['title'].strip(),
                description=request.POST['description'].strip(),
                file=upload,
            )
            messages.success(request, "Portfolio uploaded successfully")
            return redirect('portfolios')
    return render(request, "campus/portfolios/portfolio_form.html", {'portfolio': None})


@login_required
def edit_portfolio(request, portfolio_id):
    portfolio = get_object_or_404(Portfolio, id=portfolio_id, user=request.user)
    if request.method == "POST":
        upload = request.FILES.get('file')
        errors = validate_required(request.POST, 'title', 'description')
        if upload is not None:
            errors += validate_pdf_upload(upload)
        if errors:
            _flash_errors(request, errors)
        else:
            portfolio.title = request.POST['title'].strip()
            portfolio.description = request.POST['description'].strip()
            if upload is not None:
                portfolio.file.delete(save=False)
                portfolio.file = upload
            portfolio.save()
            messages.success(request, "Portfolio updated successfully")
            return redirect('portfolios')
    return render(request, "campus/portfolios/portfolio_form.html", {'portfolio': portfolio})


@login_required
@require_POST
def delete_portfolio(request, portfolio_id):
    portfolio = get_object_or_404(Portfolio, id=portfolio_id, user=request.user)
    portfolio.file.delete(save=False)
    portfolio.delete()
    messages.success(request, "Portfolio deleted successfully")
    return redirect('portfolios')


@login_required
@require_GET
def download_portfolio(request, portfolio_id):
    portfolio = get_object_or_404(Portfolio, id=portfolio_id)
    try:
        handle = portfolio.file.open('rb')
    except (FileNotFoundError, ValueError):
        logger.warning("Portfolio %s file missing from storage", portfolio.id)
        raise Http404("Portfolio file not found")
    return FileResponse(handle, as_attachment=True, filename=f"{portfolio.title}.pdf")


# ============================================================================
# TUTORIALS
# ============================================================================

@login_required
def tutorials(request):
    query = request.GET.get('q', '').strip()
    category = request.GET.get('category', '').strip()

    tutorial_list = Tutorial.objects.all()
    if query:
        tutorial_list = tutorial_list.filter(Q(title__icontains=query) | Q(content__icontains=query))
    if category:
        tutorial_list = tutorial_list.filter(category__iexact=category)

    categories = (
        Tutorial.objects.exclude(category='').order_by('category')
        .values_list('category', flat=True).distinct()
    )
    return render(request, "campus/tutorials/tutorials.html", {
        'tutorials': tutorial_list,
        'query': query,
        'category': category,
        'categories': categories,
    })


@login_required
def tutorial_detail(request, tutorial_id):
    tutorial = get_object_or_404(Tutorial.objects.select_related('user'), id=tutorial_id)
    return render(request, "campus/tutorials/tutorial_detail.html", {'tutorial': tutorial})


@admin_required
def create_tutorial(request):
    if request.method == "POST":
        video_url = request.POST.get('video_url', '').strip()
        errors = validate_required(request.POST, 'title', 'content') + _validate_url(video_url)
        if errors:
            _flash_errors(request, errors)
        else:
            with transaction.atomic():
                tutorial = Tutorial.objects.create(
                    user=request.user,
                    title=request.POST['title'].strip(),
                    content=request.POST['content'].strip(),
                    category=request.POST.get('category', '').strip(),
                    video_url=video_url,
                )
                AdminAction.log(
                    request.user, 'create_tutorial', 'tutorials', tutorial.pk,
                    {'title': tutorial.title},
                )
            messages.success(request, "Tutorial created successfully")
            return redirect('tutorial_detail', tutorial_id=tutorial.id)
    return render(request, "campus/tutorials/tutorial_form.html")


@admin_required
@require_POST
def delete_tutorial(request, tutorial_id):
    tutorial = get_object_or_404(Tutorial, id=tutorial_id)
    with transaction.atomic():
        AdminAction.log(
            request.user, 'delete_tutorial', 'tutorials', tutorial.pk, {'title': tutorial.title}
        )
        tutorial.delete()
    messages.success(request, "Tutorial deleted")
    return redirect('tutorials')


# ============================================================================
# ADMIN CONSOLE
# ============================================================================

@admin_required
def admin_dashboard(request):
    query = request.GET.get('q', '').strip()

    pending_users = User.objects.filter(is_approved=False, is_active=True).exclude(
        role=ROLE_ADMIN
    ).order_by('date_joined')

    users = User.objects.order_by('name')
    if query:
        users = users.filter(name__icontains=query)

    return render(request, "campus/admin/dashboard.html", {
        'pending_users': pending_users,
        'users': users[:50],
        'query': query,
        'role_choices': ROLE_CHOICES,
        'uploads': BulkUserUpload.objects.select_related('admin')[:10],
        'audit_logs': AdminAction.objects.select_related('admin')[:settings.AUDIT_LOG_LIMIT],
    })


@admin_required
@require_POST
def admin_approve_user(request, user_id):
    user = get_object_or_404(User, id=user_id)
    if user.is_approved:
        messages.info(request, f"{user} is already approved.")
        return redirect('admin_dashboard')

    with transaction.atomic():
        user.is_approved = True
        user.save(update_fields=['is_approved'])
        AdminAction.log(
            request.user, 'approve_user', 'profiles', user.pk, {'action': 'approved_user'}
        )

    send_approval_email(user, request.build_absolute_uri(reverse('login')))
    messages.success(request, "User approved successfully")
    return redirect('admin_dashboard')


@admin_required
@require_POST
def admin_update_role(request, user_id):
    user = get_object_or_404(User, id=user_id)
    role = request.POST.get('role', '')

    if role not in dict(ROLE_CHOICES):
        messages.error(request, "Invalid role")
    elif user == request.user and role != ROLE_ADMIN:
        messages.error(request, "You cannot remove your own admin role.")
    elif user.role == role:
        messages.info(request, f"{user} already has role {role}.")
    else:
        with transaction.atomic():
            user.role = role
            user.save(update_fields=['role'])
            AdminAction.log(request.user, 'update_role', 'profiles', user.pk, {'new_role': role})
        messages.success(request, "User role updated successfully")
    return redirect('admin_dashboard')


@admin_required
@require_POST
def admin_toggle_active(request, user_id):
    user = get_object_or_404(User, id=user_id)
    if user == request.user:
        messages.error(request, "You cannot deactivate your own account.")
        return redirect('admin_dashboard')

    with transaction.atomic():
        user.is_active = not user.is_active
        user.save(update_fields=['is_active'])
        action = 'reactivate_user' if user.is_active else 'deactivate_user'
        AdminAction.log(request.user, action, 'profiles', user.pk, {'email': user.email})
    messages.success(request, f"{user} {'reactivated' if user.is_active else 'deactivated'}")
    return redirect('admin_dashboard')


@admin_required
@require_POST
def admin_add_user(request):
    email = request.POST.get('email', '').strip().lower()
    try:
        with transaction.atomic():
            user_id = process_user_upload(
                email,
                request.POST.get('password', ''),
                request.POST.get('name', ''),
                request.POST.get('role', ''),
            )
            AdminAction.log(
                request.user, 'add_user', 'profiles', user_id,
                {'action': 'added_user', 'email': email},
            )
    except ValidationError as exc:
        _flash_errors(request, exc.messages)
    except IntegrityError:
        messages.error(request, f"A user with email {email} already exists.")
    else:
        logger.info("Admin %s added user %s", request.user.email, email)
        messages.success(request, "User added successfully")
    return redirect('admin_dashboard')


@admin_required
@require_POST
def admin_bulk_upload(request):
    upload_file = request.FILES.get('file')
    if upload_file is None:
        messages.error(request, "Please select a file")
        return redirect('admin_dashboard')
    if not upload_file.name.lower().endswith('.xlsx'):
        messages.error(request, "Please upload an Excel .xlsx file")
        return redirect('admin_dashboard')

    upload = BulkUserUpload.objects.create(
        admin=request.user,
        file_name=upload_file.name,
        file=upload_file,
        status=BulkUserUpload.STATUS_PENDING,
    )
    logger.info("Created bulk upload record %s for %s", upload.pk, upload_file.name)

    process_upload(upload, upload_file)

    AdminAction.log(
        request.user, 'bulk_upload', 'bulk_user_uploads', upload.pk,
        {
            'file_name': upload.file_name,
            'processed': upload.processed_count,
            'failed': upload.failed_count,
        },
    )

    if upload.status == BulkUserUpload.STATUS_PROCESSED:
        messages.success(
            request,
            f"Upload processed: {upload.processed_count} users created, {upload.failed_count} failed.",
        )
    else:
        messages.error(request, "Upload failed. See the errors below.")
    return redirect('admin_upload_detail', upload_id=upload.id)


@admin_required
def admin_upload_detail(request, upload_id):
    upload = get_object_or_404(BulkUserUpload.objects.select_related('admin'), id=upload_id)
    return render(request, "campus/admin/upload_detail.html", {
        'upload': upload,
        'errors': upload.errors.all(),
    })


@admin_required
def admin_audit_log(request):
    return render(request, "campus/admin/audit_log.html", {
        'audit_logs': AdminAction.objects.select_related('admin')[:settings.AUDIT_LOG_LIMIT],
    })


@admin_required
@require_GET
def admin_audit_log_json(request):
    """Newest-first audit rows, optionally only those with id > ?after=."""
    logs = AdminAction.objects.select_related('admin')
    after = request.GET.get('after')
    if after:
        try:
            logs = logs.filter(id__gt=int(after))
        except ValueError:
            return JsonResponse({"error": "after must be an integer"}, status=400)

    return JsonResponse({
        "actions": [
            {
                "id": log.id,
                "admin": log.admin.name or log.admin.email,
                "action_type": log.action_type,
                "action": log.action_label,
                "target_table": log.target_table,
                "target_id": log.target_id,
                "details": log.details,
                "created_at": log.created_at.isoformat(),
            }
            for log in logs[:settings.AUDIT_LOG_LIMIT]
        ]
    })


# ============================================================================
# CHATBOT
# ============================================================================

@login_required
@require_POST
def chatbot_message(request):
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except json.JSONDecodeError:
            return JsonResponse({"error": "Invalid JSON"}, status=400)
        if not isinstance(data, dict):
            return JsonResponse({"error": "Expected a JSON object"}, status=400)
        message = str(data.get('message') or '').strip()
    else:
        message = request.POST.get('message', '').strip()

    if not message:
        return JsonResponse({"error": "Message required"}, status=400)

    history = request.session.get(CHATBOT_HISTORY_KEY, [])
    reply = chatbot.ask(message, history, base_url=request.build_absolute_uri('/').rstrip('/'))

    history = (history + [
        {'sender': 'user', 'text': message},
        {'sender': 'bot', 'text': reply},
    ])[-CHATBOT_HISTORY_TURNS * 2:]
    request.session[CHATBOT_HISTORY_KEY] = history

    return JsonResponse({"reply": reply, "history": history})
