"""Push notification templates.

Texts are in Indonesian, the language of the mobile app.
"""

from schemas.notification import NotificationMessage

# Longer private messages are cut to this many characters in the preview
MESSAGE_PREVIEW_LENGTH = 50


def new_quiz(teacher_name: str, quiz_title: str) -> NotificationMessage:
    return NotificationMessage(
        title="Kuis Baru Tersedia!",
        body=f"{teacher_name} telah membuat kuis baru: {quiz_title}",
        data={"type": "quiz", "action": "new_quiz"},
    )


def quiz_result(quiz_title: str, score: int, passed: bool) -> NotificationMessage:
    status = "LULUS" if passed else "TIDAK LULUS"
    return NotificationMessage(
        title="Hasil Kuis",
        body=f'Kuis "{quiz_title}" - Nilai: {score}% ({status})',
        data={"type": "quiz", "action": "quiz_result"},
    )


def new_post(author_name: str, post_title: str) -> NotificationMessage:
    return NotificationMessage(
        title="Postingan Baru di Komunitas",
        body=f"{author_name}: {post_title}",
        data={"type": "community", "action": "new_post"},
    )


def new_comment(commenter_name: str, post_title: str) -> NotificationMessage:
    return NotificationMessage(
        title="Komentar Baru",
        body=f'{commenter_name} berkomentar pada postingan "{post_title}"',
        data={"type": "community", "action": "new_comment"},
    )


def schedule_update(subject: str, day: str, time: str) -> NotificationMessage:
    return NotificationMessage(
        title="Perubahan Jadwal",
        body=f"Jadwal {subject} diubah menjadi {day} pukul {time}",
        data={"type": "schedule", "action": "schedule_update"},
    )


def private_message(sender_name: str, message: str) -> NotificationMessage:
    if len(message) > MESSAGE_PREVIEW_LENGTH:
        message = message[:MESSAGE_PREVIEW_LENGTH] + "..."
    return NotificationMessage(
        title=f"Pesan dari {sender_name}",
        body=message,
        data={"type": "message", "action": "private_message"},
    )


def achievement_unlocked(achievement_name: str) -> NotificationMessage:
    return NotificationMessage(
        title="Prestasi Baru!",
        body=f"Selamat! Anda meraih prestasi: {achievement_name}",
        data={"type": "achievement", "action": "achievement_unlocked"},
    )
