"""
================================================================================
BOSS-Y CAMPUS NETWORK - URL CONFIGURATION
================================================================================

@file        urls.py
@description URL routing for the campus network

URL STRUCTURE OVERVIEW
================================================================================
1. Core Pages & Authentication (/, login, register, pending approval)
2. Profiles & People (profile, edit, education, experience, links, interests)
3. Posts & Feed (feed, create, like, edit, delete, comments)
4. Clubs (list, create, join, requests, discussions, chat)
5. Events (CRUD, registration)
6. Opportunities (CRUD, applications, comments)
7. Projects (CRUD, join requests, team roles, comments)
8. Portfolios (upload, edit, delete, download)
9. Tutorials (list, detail, admin create/delete)
10. Admin Console (approvals, roles, users, bulk upload, audit log)
11. Chatbot
12. Development Media Serving (DEBUG mode only)

NAMING CONVENTIONS
================================================================================
- Resource actions: <action>_<resource> (e.g. 'edit_post', 'join_club')
- Owner decisions on requests: decide_<resource>_request
- Admin console: prefixed with 'admin_'
- JSON endpoints live under /api/

================================================================================
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import path

from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: CORE PAGES & AUTHENTICATION
    # ========================================================================

    path("", views.index, name="index"),  # Landing page
    path("login", views.login_view, name="login"),
    path("logout", views.logout_view, name="logout"),
    path("register", views.register, name="register"),
    path("pending-approval", views.pending_approval, name="pending_approval"),


    # ========================================================================
    # SECTION 2: PROFILES & PEOPLE
    # ========================================================================

    path("profile", views.my_profile, name="my_profile"),
    path("profile/<int:user_id>", views.user_profile, name="user_profile"),
    path("edit-profile/", views.edit_profile, name="edit_profile"),

    path("profile/education/add/", views.add_education, name="add_education"),
    path(
        "profile/education/<int:education_id>/delete/",
        views.delete_education,
        name="delete_education"
    ),
    path("profile/experience/add/", views.add_experience, name="add_experience"),
    path(
        "profile/experience/<int:experience_id>/delete/",
        views.delete_experience,
        name="delete_experience"
    ),
    path("profile/social-links/", views.update_social_links, name="update_social_links"),
    path("profile/interests/add/", views.add_interest, name="add_interest"),
    path(
        "profile/interests/<int:interest_id>/remove/",
        views.remove_interest,
        name="remove_interest"
    ),

    path("people", views.people, name="people"),  # Approved member directory


    # ========================================================================
    # SECTION 3: POSTS & FEED
    # ========================================================================

    path("feed", views.feed, name="feed"),
    path("new-post/", views.new_post, name="new_post"),
    path("like/<int:post_id>/", views.toggle_like, name="toggle_like"),  # JSON
    path("edit-post/<int:post_id>/", views.edit_post, name="edit_post"),  # PUT, JSON
    path("delete-post/<int:post_id>/", views.delete_post, name="delete_post"),  # JSON
    path("add-comment/<int:post_id>/", views.add_post_comment, name="add_post_comment"),
    path(
        "delete-comment/<int:comment_id>/",
        views.delete_comment,
        name="delete_comment"
    ),  # JSON


    # ========================================================================
    # SECTION 4: CLUBS
    # ========================================================================

    path("clubs", views.clubs, name="clubs"),
    path("clubs/create/", views.create_club, name="create_club"),
    path("clubs/<int:group_id>", views.club_detail, name="club_detail"),
    path("clubs/<int:group_id>/join/", views.join_club, name="join_club"),
    path("clubs/<int:group_id>/leave/", views.leave_club, name="leave_club"),
    path(
        "clubs/<int:group_id>/privacy/",
        views.toggle_club_privacy,
        name="toggle_club_privacy"
    ),  # Creator only
    path(
        "clubs/requests/<int:request_id>/decide/",
        views.decide_club_request,
        name="decide_club_request"
    ),  # Creator only
    path(
        "clubs/<int:group_id>/discussions/create/",
        views.create_discussion,
        name="create_discussion"
    ),  # Creator only
    path(
        "clubs/<int:group_id>/messages/send/",
        views.send_club_message,
        name="send_club_message"
    ),  # Members only


    # ========================================================================
    # SECTION 5: EVENTS
    # ========================================================================

    path("events", views.events, name="events"),
    path("events/create/", views.create_event, name="create_event"),
    path("events/<int:event_id>", views.event_detail, name="event_detail"),
    path("events/<int:event_id>/edit/", views.edit_event, name="edit_event"),
    path("events/<int:event_id>/delete/", views.delete_event, name="delete_event"),
    path("events/<int:event_id>/register/", views.register_event, name="register_event"),
    path(
        "events/<int:event_id>/unregister/",
        views.unregister_event,
        name="unregister_event"
    ),


    # ========================================================================
    # SECTION 6: OPPORTUNITIES
    # ========================================================================

    path("opportunities", views.opportunities, name="opportunities"),
    path("opportunities/create/", views.create_opportunity, name="create_opportunity"),
    path(
        "opportunities/<int:opportunity_id>",
        views.opportunity_detail,
        name="opportunity_detail"
    ),
    path(
        "opportunities/<int:opportunity_id>/edit/",
        views.edit_opportunity,
        name="edit_opportunity"
    ),
    path(
        "opportunities/<int:opportunity_id>/delete/",
        views.delete_opportunity,
        name="delete_opportunity"
    ),
    path(
        "opportunities/<int:opportunity_id>/apply/",
        views.apply_opportunity,
        name="apply_opportunity"
    ),
    path(
        "opportunities/applications/<int:application_id>/decide/",
        views.decide_application,
        name="decide_application"
    ),  # Owner only
    path(
        "opportunities/<int:opportunity_id>/comment/",
        views.add_opportunity_comment,
        name="add_opportunity_comment"
    ),


    # ========================================================================
    # SECTION 7: PROJECTS
    # ========================================================================

    path("projects", views.projects, name="projects"),
    path("projects/create/", views.create_project, name="create_project"),
    path("projects/<int:project_id>", views.project_detail, name="project_detail"),
    path("projects/<int:project_id>/edit/", views.edit_project, name="edit_project"),
    path("projects/<int:project_id>/delete/", views.delete_project, name="delete_project"),
    path(
        "projects/<int:project_id>/join/",
        views.request_join_project,
        name="request_join_project"
    ),
    path(
        "projects/requests/<int:request_id>/decide/",
        views.decide_project_request,
        name="decide_project_request"
    ),  # Owner only
    path(
        "projects/requests/<int:request_id>/role/",
        views.set_member_role,
        name="set_member_role"
    ),  # Owner only
    path(
        "projects/requests/<int:request_id>/remove/",
        views.remove_project_member,
        name="remove_project_member"
    ),  # Owner removes, member leaves
    path(
        "projects/<int:project_id>/comment/",
        views.add_project_comment,
        name="add_project_comment"
    ),


    # ========================================================================
    # SECTION 8: PORTFOLIOS
    # ========================================================================

    path("portfolios", views.portfolios, name="portfolios"),
    path("portfolios/upload/", views.upload_portfolio, name="upload_portfolio"),
    path(
        "portfolios/<int:portfolio_id>/edit/",
        views.edit_portfolio,
        name="edit_portfolio"
    ),
    path(
        "portfolios/<int:portfolio_id>/delete/",
        views.delete_portfolio,
        name="delete_portfolio"
    ),
    path(
        "portfolios/<int:portfolio_id>/download/",
        views.download_portfolio,
        name="download_portfolio"
    ),


    # ========================================================================
    # SECTION 9: TUTORIALS
    # ========================================================================

    path("tutorials", views.tutorials, name="tutorials"),
    path("tutorials/create/", views.create_tutorial, name="create_tutorial"),  # Admin only
    path("tutorials/<int:tutorial_id>", views.tutorial_detail, name="tutorial_detail"),
    path(
        "tutorials/<int:tutorial_id>/delete/",
        views.delete_tutorial,
        name="delete_tutorial"
    ),  # Admin only


    # ========================================================================
    # SECTION 10: ADMIN CONSOLE
    # ========================================================================
    # Role 'admin' or superuser; everyone else is bounced to the feed

    path("admin", views.admin_dashboard, name="admin_dashboard"),
    path(
        "admin/users/<int:user_id>/approve/",
        views.admin_approve_user,
        name="admin_approve_user"
    ),
    path(
        "admin/users/<int:user_id>/role/",
        views.admin_update_role,
        name="admin_update_role"
    ),
    path(
        "admin/users/<int:user_id>/toggle-active/",
        views.admin_toggle_active,
        name="admin_toggle_active"
    ),
    path("admin/users/add/", views.admin_add_user, name="admin_add_user"),
    path("admin/bulk-upload/", views.admin_bulk_upload, name="admin_bulk_upload"),
    path(
        "admin/bulk-upload/<int:upload_id>",
        views.admin_upload_detail,
        name="admin_upload_detail"
    ),
    path("admin/audit-log", views.admin_audit_log, name="admin_audit_log"),
    path(
        "api/admin/audit-log/",
        views.admin_audit_log_json,
        name="admin_audit_log_json"
    ),  # Polled by the audit log page


    # ========================================================================
    # SECTION 11: CHATBOT
    # ========================================================================

    path("api/chatbot/", views.chatbot_message, name="chatbot_message"),
]


# ============================================================================
# SECTION 12: DEVELOPMENT MEDIA SERVING
# ============================================================================

if settings.DEBUG:
    urlpatterns += static(
        settings.MEDIA_URL,
        document_root=settings.MEDIA_ROOT
    )
