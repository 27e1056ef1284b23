import json
import re
from io import StringIO
from datetime import timedelta

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import Client, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from campus.models import Comment, Group, GroupMember, Post, PostLike

from .utils import make_image, make_user, message_texts


class LikeCounterTest(TestCase):

    def setUp(self):
        self.author = make_user('author@campus.edu')
        self.fan = make_user('fan@campus.edu')
        self.post = Post.objects.create(user=self.author, content="Hello campus")

    def test_toggle_like_twice_returns_to_zero(self):
        self.assertEqual(self.post.toggle_like(self.fan), (True, 1))
        self.assertEqual(self.post.toggle_like(self.fan), (False, 0))
        self.assertFalse(PostLike.objects.exists())

    def test_counter_never_goes_below_zero(self):
        self.assertEqual(self.post.decrement_likes(), 0)
        self.post.refresh_from_db()
        self.assertEqual(self.post.likes_count, 0)

    def test_two_users_count_separately(self):
        self.post.toggle_like(self.fan)
        liked, count = self.post.toggle_like(self.author)
        self.assertTrue(liked)
        self.assertEqual(count, 2)

    def test_toggle_like_view(self):
        self.client.force_login(self.fan)
        url = reverse('toggle_like', args=[self.post.id])

        data = self.client.post(url).json()
        self.assertEqual(data, {'liked': True, 'likes_count': 1})
        data = self.client.post(url).json()
        self.assertEqual(data, {'liked': False, 'likes_count': 0})

    def test_toggle_like_requires_post(self):
        self.client.force_login(self.fan)
        response = self.client.get(reverse('toggle_like', args=[self.post.id]))
        self.assertEqual(response.status_code, 405)


class FeedTest(TestCase):

    def setUp(self):
        self.user = make_user('reader@campus.edu')
        self.client.force_login(self.user)

    def test_feed_excludes_group_posts_and_marks_likes(self):
        other = make_user('other@campus.edu')
        club = Group.objects.create(name="Chess", description="Chess club", creator=other)
        earlier = timezone.now() - timedelta(hours=1)
        liked = Post.objects.create(user=other, content="Liked post", created_at=earlier)
        Post.objects.create(user=other, content="Plain post")
        Post.objects.create(user=other, content="Club only", group=club)
        liked.toggle_like(self.user)

        response = self.client.get(reverse('feed'))
        posts = list(response.context['page_obj'])
        self.assertEqual([p.content for p in posts], ["Plain post", "Liked post"])
        self.assertEqual({p.content: p.has_liked for p in posts}, {"Plain post": False, "Liked post": True})

    def test_feed_is_paginated_by_ten(self):
        for i in range(12):
            Post.objects.create(user=self.user, content=f"Post {i}")
        response = self.client.get(reverse('feed'))
        self.assertEqual(len(response.context['page_obj']), 10)
        response = self.client.get(reverse('feed'), {'page': 2})
        self.assertEqual(len(response.context['page_obj']), 2)

    def test_urls_in_content_are_linkified(self):
        Post.objects.create(user=self.user, content="See https://example.com <b>now</b>")
        response = self.client.get(reverse('feed'))
        self.assertContains(response, '<a href="https://example.com"')
        self.assertNotContains(response, '<b>now</b>')


class CreatePostTest(TestCase):

    def setUp(self):
        self.user = make_user('writer@campus.edu')
        self.client.force_login(self.user)

    def test_create_text_post(self):
        response = self.client.post(reverse('new_post'), {'content': 'First!'})
        self.assertRedirects(response, reverse('feed'), fetch_redirect_response=False)
        self.assertEqual(Post.objects.get().content, 'First!')

    def test_empty_post_is_refused(self):
        response = self.client.post(reverse('new_post'), {'content': '   '})
        self.assertIn("Post cannot be empty", message_texts(response))
        self.assertFalse(Post.objects.exists())

    @override_settings(MAX_IMAGE_UPLOAD_SIZE=10)
    def test_oversized_image_is_refused(self):
        image = SimpleUploadedFile('big.png', b'x' * 50, content_type='image/png')
        response = self.client.post(reverse('new_post'), {'content': 'pic', 'image': image})
        self.assertIn("Image size must be less than 5MB", message_texts(response))
        self.assertFalse(Post.objects.exists())

    def test_non_image_is_refused(self):
        upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
        self.client.post(reverse('new_post'), {'image': upload})
        self.assertFalse(Post.objects.exists())

    def test_text_named_like_an_image_is_refused(self):
        upload = SimpleUploadedFile('cat.png', b'not an image at all', content_type='text/plain')
        response = self.client.post(reverse('new_post'), {'content': 'cat', 'image': upload})
        self.assertIn("Only image files are allowed", message_texts(response))
        self.assertFalse(Post.objects.exists())

    def test_image_mime_type_with_garbage_bytes_is_refused(self):
        upload = SimpleUploadedFile('cat.png', b'not an image at all', content_type='image/png')
        self.client.post(reverse('new_post'), {'content': 'cat', 'image': upload})
        self.assertFalse(Post.objects.exists())

    def test_real_image_is_accepted(self):
        self.client.post(reverse('new_post'), {'content': '', 'image': make_image()})
        post = Post.objects.get()
        self.assertTrue(post.image.name.endswith('.png'))

    def test_group_post_requires_membership(self):
        owner = make_user('owner@campus.edu')
        club = Group.objects.create(name="Robotics", description="Bots", creator=owner)
        self.client.post(reverse('new_post'), {'content': 'hi', 'group_id': club.id})
        self.assertFalse(Post.objects.exists())

        GroupMember.objects.create(group=club, user=self.user)
        response = self.client.post(reverse('new_post'), {'content': 'hi', 'group_id': club.id})
        self.assertRedirects(
            response, reverse('club_detail', args=[club.id]), fetch_redirect_response=False
        )
        self.assertEqual(Post.objects.get().group, club)


class EditWindowTest(TestCase):

    def setUp(self):
        self.user = make_user('author@campus.edu')
        self.client.force_login(self.user)
        self.post = Post.objects.create(user=self.user, content="Original")
        self.url = reverse('edit_post', args=[self.post.id])

    def put(self, content):
        return self.client.put(
            self.url, data=json.dumps({'content': content}), content_type='application/json'
        )

    def test_edit_inside_window(self):
        response = self.put("Edited")
        self.assertEqual(response.status_code, 200)
        self.post.refresh_from_db()
        self.assertEqual(self.post.content, "Edited")

    def test_edit_returns_rendered_content(self):
        data = self.put("See https://campus.example\n<b>bold</b>").json()
        self.assertIn('<a href="https://campus.example"', data['content_html'])
        self.assertIn('<br>', data['content_html'])
        self.assertIn('&lt;b&gt;bold&lt;/b&gt;', data['content_html'])

    def test_non_object_json_body_is_rejected(self):
        for body in ('["a"]', '"hi"', '42'):
            response = self.client.put(self.url, data=body, content_type='application/json')
            self.assertEqual(response.status_code, 400)
        self.post.refresh_from_db()
        self.assertEqual(self.post.content, "Original")

    def test_edit_after_window_is_forbidden(self):
        Post.objects.filter(pk=self.post.pk).update(
            created_at=timezone.now() - timedelta(minutes=16)
        )
        response = self.put("Too late")
        self.assertEqual(response.status_code, 403)
        self.post.refresh_from_db()
        self.assertEqual(self.post.content, "Original")

    def test_is_post_editable_boundary(self):
        now = timezone.now()
        self.assertTrue(Post.is_post_editable(now - timedelta(minutes=14)))
        self.assertFalse(Post.is_post_editable(now - timedelta(minutes=16)))

    def test_only_owner_can_edit(self):
        self.client.force_login(make_user('intruder@campus.edu'))
        self.assertEqual(self.put("Hijacked").status_code, 404)

    def test_only_owner_can_delete(self):
        self.client.force_login(make_user('intruder@campus.edu'))
        response = self.client.post(reverse('delete_post', args=[self.post.id]))
        self.assertEqual(response.status_code, 404)
        self.assertTrue(Post.objects.filter(pk=self.post.pk).exists())

    def test_owner_deletes_post(self):
        response = self.client.post(reverse('delete_post', args=[self.post.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Post.objects.exists())


class CommentTest(TestCase):

    def setUp(self):
        self.user = make_user('commenter@campus.edu')
        self.client.force_login(self.user)
        self.post = Post.objects.create(user=make_user('author@campus.edu'), content="Discuss")

    def test_add_and_delete_comment(self):
        self.client.post(reverse('add_post_comment', args=[self.post.id]), {'content': 'Nice'})
        comment = Comment.objects.get(post=self.post)
        self.assertEqual(comment.user, self.user)

        response = self.client.post(reverse('delete_comment', args=[comment.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Comment.objects.exists())

    def test_cannot_delete_someone_elses_comment(self):
        comment = Comment.objects.create(user=self.post.user, post=self.post, content="Mine")
        response = self.client.post(reverse('delete_comment', args=[comment.id]))
        self.assertEqual(response.status_code, 404)
        self.assertTrue(Comment.objects.filter(pk=comment.pk).exists())


class DeleteOldPostsTest(TestCase):

    def setUp(self):
        self.user = make_user('author@campus.edu')
        old = timezone.now() - timedelta(days=31)
        self.club = Group.objects.create(name="Archive", description="Old", creator=self.user)

        self.old_post = Post.objects.create(user=self.user, content="old", created_at=old)
        self.old_club_post = Post.objects.create(
            user=self.user, content="old club", group=self.club, created_at=old
        )
        self.week_old = Post.objects.create(
            user=self.user, content="week", created_at=timezone.now() - timedelta(days=8)
        )
        self.fresh = Post.objects.create(user=self.user, content="fresh")

    def test_default_retention(self):
        call_command('delete_old_posts', stdout=StringIO())
        remaining = set(Post.objects.values_list('content', flat=True))
        self.assertEqual(remaining, {"old club", "week", "fresh"})

    def test_days_override(self):
        call_command('delete_old_posts', days=7, stdout=StringIO())
        remaining = set(Post.objects.values_list('content', flat=True))
        self.assertEqual(remaining, {"old club", "fresh"})


@override_settings(CSRF_COOKIE_HTTPONLY=True)
class CsrfTokenTest(TestCase):

    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)
        self.client.force_login(make_user('fan@campus.edu'))
        self.post = Post.objects.create(user=make_user('author@campus.edu'), content="Hello")
        self.like_url = reverse('toggle_like', args=[self.post.id])

    def page_token(self):
        response = self.client.get(reverse('feed'))
        match = re.search(r'<meta name="csrf-token" content="([^"]+)">', response.content.decode())
        self.assertIsNotNone(match)
        return match.group(1)

    def test_like_with_token_from_page(self):
        response = self.client.post(self.like_url, HTTP_X_CSRFTOKEN=self.page_token())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'liked': True, 'likes_count': 1})

    def test_like_without_token_is_forbidden(self):
        self.page_token()
        response = self.client.post(self.like_url, HTTP_X_CSRFTOKEN='')
        self.assertEqual(response.status_code, 403)
        self.assertFalse(PostLike.objects.exists())
