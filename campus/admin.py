from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group as AuthGroup
from django.db import transaction
from django.urls import reverse
from django.utils.html import format_html

from .emails import send_approval_email
from .models import (
    AdminAction, BulkUploadError, BulkUserUpload, Comment, Event, Group,
    GroupJoinRequest, GroupMember, Opportunity, OpportunityApplication,
    Portfolio, Post, Project, ProjectJoinRequest, Tutorial, User,
)

# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'name', 'role', 'is_approved', 'is_active', 'date_joined')
    list_filter = ('role', 'is_approved', 'is_active')
    search_fields = ('email', 'name', 'username')
    ordering = ('-date_joined',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Campus profile', {'fields': ('name', 'role', 'is_approved', 'title', 'bio', 'timezone')}),
    )
    actions = ['approve_users', 'deactivate_users']

    def approve_users(self, request, queryset):
        pending = list(queryset.filter(is_approved=False))
        with transaction.atomic():
            for user in pending:
                user.is_approved = True
                user.save(update_fields=['is_approved'])
                AdminAction.log(
                    request.user, 'approve_user', 'profiles', user.pk,
                    {'action': 'approved_user', 'via': 'django_admin'},
                )
        login_url = request.build_absolute_uri(reverse('login'))
        for user in pending:
            send_approval_email(user, login_url)
        self.message_user(request, f"{len(pending)} users approved")
    approve_users.short_description = "Approve selected users"

    def deactivate_users(self, request, queryset):
        targets = list(queryset.exclude(pk=request.user.pk).filter(is_active=True))
        with transaction.atomic():
            for user in targets:
                user.is_active = False
                user.save(update_fields=['is_active'])
                AdminAction.log(
                    request.user, 'deactivate_user', 'profiles', user.pk, {'email': user.email}
                )
        self.message_user(request, f"{len(targets)} users deactivated")
    deactivate_users.short_description = "Deactivate selected users"


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'user_link', 'group', 'likes_count', 'created_at', 'content_short')
    search_fields = ('content', 'user__email', 'user__name')
    list_filter = ('created_at',)

    def user_link(self, obj):
        url = reverse("admin:campus_user_change", args=[obj.user.id])
        return format_html('<a href="{}">{}</a>', url, obj.user)
    user_link.short_description = 'User'
    user_link.admin_order_field = 'user__name'

    def content_short(self, obj):
        if obj.content:
            return obj.content[:80] + '...' if len(obj.content) > 80 else obj.content
        return "(image only)"
    content_short.short_description = 'Content'


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'post', 'project', 'opportunity', 'created_at')
    search_fields = ('content', 'user__email')


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    extra = 0


@admin.register(Group)
class ClubAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'creator', 'is_private', 'created_at', 'member_count')
    list_filter = ('is_private',)
    search_fields = ('name', 'creator__email')
    inlines = [GroupMemberInline]

    def member_count(self, obj):
        return obj.memberships.count()
    member_count.short_description = 'Members'


@admin.register(GroupJoinRequest)
class GroupJoinRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'group', 'user', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'user', 'date', 'location')
    search_fields = ('title', 'location')


@admin.register(Opportunity)
class OpportunityAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'type', 'user', 'deadline')
    list_filter = ('type',)
    search_fields = ('title',)


@admin.register(OpportunityApplication)
class OpportunityApplicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'opportunity', 'user', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'user', 'created_at')
    search_fields = ('title', 'category')


@admin.register(ProjectJoinRequest)
class ProjectJoinRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'project', 'user', 'status', 'role')
    list_filter = ('status', 'role')


@admin.register(Portfolio)
class PortfolioAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'user', 'created_at')


@admin.register(Tutorial)
class TutorialAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'category', 'user', 'created_at')
    search_fields = ('title', 'category')


@admin.register(AdminAction)
class AdminActionAdmin(admin.ModelAdmin):
    list_display = ('id', 'admin', 'action_type', 'target_table', 'target_id', 'created_at')
    list_filter = ('action_type', 'target_table')
    readonly_fields = ('admin', 'action_type', 'target_table', 'target_id', 'details', 'created_at')

    def has_add_permission(self, request):
        return False


class BulkUploadErrorInline(admin.TabularInline):
    model = BulkUploadError
    extra = 0
    readonly_fields = ('row_number', 'error_message')


@admin.register(BulkUserUpload)
class BulkUserUploadAdmin(admin.ModelAdmin):
    list_display = ('id', 'file_name', 'admin', 'status', 'processed_count', 'failed_count', 'created_at')
    list_filter = ('status',)
    inlines = [BulkUploadErrorInline]


# Unregister Django's default Group
admin.site.unregister(AuthGroup)

# Basic admin site configuration
admin.site.site_header = "Boss-y Campus Admin"
admin.site.site_title = "Boss-y Campus Admin Portal"
admin.site.index_title = "Welcome"
