from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from campus.models import GroupJoinRequest

from .utils import make_admin, make_user


class TimezoneMiddlewareTest(TestCase):

    def tearDown(self):
        timezone.deactivate()

    def test_user_timezone_is_activated(self):
        self.client.force_login(make_user('tz@campus.edu', timezone='Asia/Dhaka'))
        self.client.get(reverse('feed'))
        self.assertEqual(str(timezone.get_current_timezone()), 'Asia/Dhaka')

    def test_unknown_timezone_falls_back_to_utc(self):
        self.client.force_login(make_user('tz@campus.edu', timezone='Mars/Olympus'))
        self.client.get(reverse('feed'))
        self.assertEqual(str(timezone.get_current_timezone()), 'UTC')


class ApprovalGateTest(TestCase):

    def setUp(self):
        self.client.force_login(make_user('waiting@campus.edu', approved=False))

    def test_unapproved_user_is_sent_to_pending_page(self):
        for name in ('feed', 'clubs', 'events', 'people'):
            response = self.client.get(reverse(name))
            self.assertRedirects(response, reverse('pending_approval'), fetch_redirect_response=False)

    def test_pending_page_and_logout_stay_reachable(self):
        self.assertEqual(self.client.get(reverse('pending_approval')).status_code, 200)
        response = self.client.get(reverse('logout'))
        self.assertRedirects(response, reverse('index'), fetch_redirect_response=False)


class PendingCountsTest(TestCase):

    def test_admin_sees_pending_approvals(self):
        make_user('waiting@campus.edu', approved=False)
        self.client.force_login(make_admin())
        response = self.client.get(reverse('feed'))
        self.assertEqual(response.context['pending_approvals_count'], 1)

    def test_club_creator_sees_pending_join_requests(self):
        creator = make_user('creator@campus.edu')
        self.client.force_login(creator)
        self.client.post(reverse('create_club'), {
            'name': 'Chess', 'description': 'Weekly games', 'is_private': 'on',
        })
        club = creator.owned_groups.get()
        GroupJoinRequest.objects.create(group=club, user=make_user('joiner@campus.edu'))

        response = self.client.get(reverse('feed'))
        self.assertEqual(response.context['pending_approvals_count'], 0)
        self.assertEqual(response.context['pending_join_requests_count'], 1)
