"""
Notification service: in-app notifications and email dispatch.
Centralizes notification logic for referrals, meetings and admin broadcasts.
"""

import asyncio
import logging
import threading
import uuid
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc

from innerview.db import models
from innerview.db.models import now_utc
from innerview.db.schemas import NotificationType
from innerview.utils.feature_flags import email_notifications_enabled
from innerview.utils.urls import build_app_link

logger = logging.getLogger(__name__)

# Template name constants (match actual template file names)
TEMPLATE_REFERRAL_ASSIGNED = 'referral_assigned'
TEMPLATE_MEETING_INVITATION = 'meeting_invitation'


class NotificationService:
    """Service class for handling all notification operations."""

    def __init__(self, db: Session, email_service: Optional[Any] = None, background: bool = True):
        self.db = db
        self.background = background
        if email_service is not None:
            self.email_service = email_service
        else:
            from innerview.services.email_service import get_email_service
            self.email_service = get_email_service()

    # === In-app notifications ===

    def create_notification(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType | str = NotificationType.SYSTEM,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> models.Notification:
        """
        Create an in-app notification for a user.

        Args:
            user_id: The recipient user ID
            title: Short notification title
            message: Detailed notification message
            type: Notification category (e.g., REFERRAL, MEETING)
            link: Optional frontend path the notification points to
            metadata: Additional event-specific data
        """
        notification = models.Notification(
            user_id=user_id,
            type=type.value if isinstance(type, NotificationType) else str(type),
            title=title,
            message=message,
            link=link,
        )
        if metadata:
            notification.set_metadata(metadata)

        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def _owned_query(self, user_id: uuid.UUID):
        return self.db.query(models.Notification).filter(models.Notification.user_id == user_id)

    def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[models.Notification]:
        """Get notifications for a user, ordered by most recent."""
        query = self._owned_query(user_id)
        if unread_only:
            query = query.filter(models.Notification.is_read.is_(False))
        return query.order_by(desc(models.Notification.created_at)).limit(limit).all()

    def get_total_count(self, user_id: uuid.UUID) -> int:
        return self._owned_query(user_id).count()

    def get_unread_count(self, user_id: uuid.UUID) -> int:
        return self._owned_query(user_id).filter(models.Notification.is_read.is_(False)).count()

    def mark_notification_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """
        Mark a notification as read for a specific user.
        Returns False if the notification is missing or owned by someone else.
        """
        notification = self.db.query(models.Notification).filter(
            and_(
                models.Notification.id == notification_id,
                models.Notification.user_id == user_id,
            )
        ).first()
        if not notification:
            return False

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = now_utc()
            self.db.commit()
        return True

    def mark_all_read(self, user_id: uuid.UUID) -> int:
        updated = (
            self._owned_query(user_id)
            .filter(models.Notification.is_read.is_(False))
            .update({"is_read": True, "read_at": now_utc()}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def delete_notification(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        notification = self._owned_query(user_id).filter(models.Notification.id == notification_id).first()
        if not notification:
            return False
        self.db.delete(notification)
        self.db.commit()
        return True

    # === Email dispatch ===

    def send_email_notification(self, to_email: str, subject: str, template_name: str, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Render a template and send it, in a background thread unless the
        service was created with ``background=False``.

        Failures are logged and reported in the returned dict, never raised.
        """
        if not email_notifications_enabled():
            return {'success': False, 'skipped': True}
        if not self.email_service:
            logger.warning("email_skipped: no email service configured (to=%s)", to_email)
            return {'success': False, 'error': 'No email service configured'}

        try:
            html, text = self.email_service.render_template(template_name, context)
        except Exception as e:
            logger.error("email_render_failed: template=%s error=%s", template_name, e)
            return {'success': False, 'error': f'Template render failed: {e}'}

        def _send() -> Dict[str, Any]:
            try:
                result = asyncio.run(self.email_service.send_email(
                    to_email=to_email,
                    subject=subject,
                    html_content=html,
                    text_content=text,
                ))
            except Exception as e:
                logger.error("email_send_failed: to=%s error=%s", to_email, e)
                return {'success': False, 'error': str(e)}
            if not result.get('success'):
                logger.warning("email_send_failed: to=%s error=%s", to_email, result.get('error'))
            return result

        if not self.background:
            return _send()

        t = threading.Thread(target=_send, daemon=True)
        t.start()
        return {'success': True, 'dispatched_in_background': True}

    # === High-level notification methods ===

    def notify_referral_assigned(self, referral: models.Referral, assignee: models.User, created_by: models.User) -> Dict[str, Any]:
        """Notify the assignee of a referral in-app and by email."""
        student_name = referral.student.name if referral.student else ''
        link = f"/referrals/{referral.id}"
        result: Dict[str, Any] = {}
        result['in_app_notification'] = self.create_notification(
            user_id=assignee.id,
            type=NotificationType.REFERRAL,
            title="New referral assigned",
            message=f"{created_by.name} assigned you the referral \"{referral.title}\" for {student_name}.",
            link=link,
            metadata={
                'referral_id': str(referral.id),
                'student_id': str(referral.student_id),
                'priority': referral.priority,
            },
        )
        result['email_result'] = self.send_email_notification(
            to_email=assignee.email,
            subject=f"New referral: {referral.title}",
            template_name=TEMPLATE_REFERRAL_ASSIGNED,
            context={
                'user_name': assignee.name,
                'created_by_name': created_by.name,
                'referral_title': referral.title,
                'student_name': student_name,
                'priority': referral.priority,
                'referral_url': build_app_link(link),
            },
        )
        return result

    def notify_meeting_participants(self, meeting: models.RtiMeeting, users: List[models.User], organizer_id: Optional[uuid.UUID] = None) -> List[models.Notification]:
        """Create an in-app notification (plus email) for each meeting participant."""
        link = f"/meetings/{meeting.id}"
        meeting_date = meeting.date.strftime('%B %d, %Y %H:%M') if meeting.date else ''
        notifications = []
        for user in users:
            if organizer_id and user.id == organizer_id:
                continue
            notifications.append(self.create_notification(
                user_id=user.id,
                type=NotificationType.MEETING,
                title="New RTI meeting",
                message=f"You were added to the meeting \"{meeting.title}\" on {meeting_date}.",
                link=link,
                metadata={'meeting_id': str(meeting.id)},
            ))
            self.send_email_notification(
                to_email=user.email,
                subject=f"RTI meeting: {meeting.title}",
                template_name=TEMPLATE_MEETING_INVITATION,
                context={
                    'user_name': user.name,
                    'meeting_title': meeting.title,
                    'meeting_date': meeting_date,
                    'location': meeting.location,
                    'meeting_url': build_app_link(link),
                },
            )
        return notifications


def get_notification_service(db: Session) -> NotificationService:
    return NotificationService(db)
