from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from campus.models import (
    STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED,
    Discussion, Group, GroupJoinRequest, GroupMember, GroupMessage, Post,
)

from .utils import make_user, message_texts


class ClubTestCase(TestCase):

    def setUp(self):
        self.creator = make_user('creator@campus.edu')
        self.student = make_user('student@campus.edu')
        self.public_club = Group.objects.create(
            name="Hiking", description="Weekend hikes", creator=self.creator
        )
        self.private_club = Group.objects.create(
            name="Investors", description="Angel circle", creator=self.creator, is_private=True
        )
        for club in (self.public_club, self.private_club):
            GroupMember.objects.create(group=club, user=self.creator)


class CreateClubTest(TestCase):

    def test_creator_becomes_member(self):
        user = make_user('founder@campus.edu')
        self.client.force_login(user)
        self.client.post(reverse('create_club'), {
            'name': 'Film Society', 'description': 'Movies on Fridays', 'is_private': 'on',
        })
        club = Group.objects.get(name='Film Society')
        self.assertTrue(club.is_private)
        self.assertTrue(club.is_member(user))


class JoinClubTest(ClubTestCase):

    def setUp(self):
        super().setUp()
        self.client.force_login(self.student)

    def test_public_club_joins_directly(self):
        self.client.post(reverse('join_club', args=[self.public_club.id]))
        self.assertTrue(self.public_club.is_member(self.student))
        self.assertFalse(GroupJoinRequest.objects.exists())

    def test_private_club_creates_pending_request(self):
        self.client.post(reverse('join_club', args=[self.private_club.id]))
        self.assertFalse(self.private_club.is_member(self.student))
        request = GroupJoinRequest.objects.get(group=self.private_club, user=self.student)
        self.assertEqual(request.status, STATUS_PENDING)

    def test_second_pending_request_is_refused(self):
        url = reverse('join_club', args=[self.private_club.id])
        self.client.post(url)
        response = self.client.post(url)
        self.assertIn(
            "You already have a pending request for this club.", message_texts(response)
        )
        self.assertEqual(GroupJoinRequest.objects.count(), 1)

    def test_leave_club(self):
        GroupMember.objects.create(group=self.public_club, user=self.student)
        self.client.post(reverse('leave_club', args=[self.public_club.id]))
        self.assertFalse(self.public_club.is_member(self.student))

    def test_creator_cannot_leave(self):
        self.client.force_login(self.creator)
        self.client.post(reverse('leave_club', args=[self.public_club.id]))
        self.assertTrue(self.public_club.is_member(self.creator))


class DecideJoinRequestTest(ClubTestCase):

    def setUp(self):
        super().setUp()
        self.join_request = GroupJoinRequest.objects.create(
            group=self.private_club, user=self.student
        )
        self.url = reverse('decide_club_request', args=[self.join_request.id])

    def test_approve_creates_membership(self):
        self.client.force_login(self.creator)
        self.client.post(self.url, {'status': STATUS_APPROVED})
        self.join_request.refresh_from_db()
        self.assertEqual(self.join_request.status, STATUS_APPROVED)
        self.assertTrue(self.private_club.is_member(self.student))

    def test_reject_does_not_create_membership(self):
        self.client.force_login(self.creator)
        self.client.post(self.url, {'status': STATUS_REJECTED})
        self.join_request.refresh_from_db()
        self.assertEqual(self.join_request.status, STATUS_REJECTED)
        self.assertFalse(self.private_club.is_member(self.student))

    def test_decided_request_cannot_be_decided_again(self):
        self.join_request.decide(STATUS_REJECTED)
        with self.assertRaises(ValueError):
            self.join_request.decide(STATUS_APPROVED)
        self.assertFalse(self.private_club.is_member(self.student))

    def test_invalid_status(self):
        with self.assertRaises(ValueError):
            self.join_request.decide('maybe')

    def test_only_creator_can_decide(self):
        self.client.force_login(make_user('outsider@campus.edu'))
        response = self.client.post(self.url, {'status': STATUS_APPROVED})
        self.assertEqual(response.status_code, 404)
        self.join_request.refresh_from_db()
        self.assertEqual(self.join_request.status, STATUS_PENDING)


class ClubListTest(ClubTestCase):

    def test_list_is_newest_first_with_counts(self):
        Group.objects.filter(pk=self.public_club.pk).update(
            created_at=timezone.now() - timedelta(days=2)
        )
        GroupMember.objects.create(group=self.public_club, user=self.student)
        self.client.force_login(self.student)
        response = self.client.get(reverse('clubs'))
        groups = list(response.context['groups'])
        self.assertEqual([g.name for g in groups], ["Investors", "Hiking"])
        self.assertEqual(groups[1].member_count, 2)
        self.assertTrue(groups[1].viewer_is_member)
        self.assertFalse(groups[0].viewer_is_member)

    def test_search(self):
        self.client.force_login(self.student)
        response = self.client.get(reverse('clubs'), {'q': 'angel'})
        self.assertEqual([g.name for g in response.context['groups']], ["Investors"])


class ClubDetailTest(ClubTestCase):

    def test_private_club_hides_content_from_outsiders(self):
        Post.objects.create(user=self.creator, content="Secret deal flow", group=self.private_club)
        self.client.force_login(self.student)
        response = self.client.get(reverse('club_detail', args=[self.private_club.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.context['can_view'])
        self.assertNotContains(response, "Secret deal flow")

    def test_public_club_shows_posts_but_not_chat(self):
        Post.objects.create(user=self.creator, content="Trail report", group=self.public_club)
        self.client.force_login(self.student)
        response = self.client.get(reverse('club_detail', args=[self.public_club.id]))
        self.assertContains(response, "Trail report")
        self.assertNotIn('chat_messages', response.context)

    def test_creator_sees_pending_requests(self):
        GroupJoinRequest.objects.create(group=self.private_club, user=self.student)
        self.client.force_login(self.creator)
        response = self.client.get(reverse('club_detail', args=[self.private_club.id]))
        self.assertEqual(len(response.context['join_requests']), 1)

    def test_toggle_privacy_is_creator_only(self):
        url = reverse('toggle_club_privacy', args=[self.public_club.id])
        self.client.force_login(self.student)
        self.assertEqual(self.client.post(url).status_code, 404)

        self.client.force_login(self.creator)
        self.client.post(url)
        self.public_club.refresh_from_db()
        self.assertTrue(self.public_club.is_private)


class DiscussionTest(ClubTestCase):

    def test_only_creator_starts_discussions(self):
        GroupMember.objects.create(group=self.public_club, user=self.student)
        url = reverse('create_discussion', args=[self.public_club.id])

        self.client.force_login(self.student)
        self.assertEqual(self.client.post(url, {'title': 'Routes'}).status_code, 404)

        self.client.force_login(self.creator)
        self.client.post(url, {'title': 'Routes'})
        self.assertEqual(Discussion.objects.get().title, 'Routes')

    def test_members_only_messages(self):
        url = reverse('send_club_message', args=[self.public_club.id])
        self.client.force_login(self.student)
        self.client.post(url, {'content': 'hello?'})
        self.assertFalse(GroupMessage.objects.exists())

        GroupMember.objects.create(group=self.public_club, user=self.student)
        self.client.post(url, {'content': 'hello!'})
        message = GroupMessage.objects.get()
        self.assertEqual(message.group, self.public_club)
        self.assertIsNone(message.discussion)

    def test_message_in_discussion(self):
        discussion = Discussion.objects.create(
            group=self.public_club, creator=self.creator, title='Gear'
        )
        self.client.force_login(self.creator)
        self.client.post(
            reverse('send_club_message', args=[self.public_club.id]),
            {'content': 'Boots?', 'discussion_id': discussion.id},
        )
        self.assertEqual(discussion.messages.get().content, 'Boots?')
