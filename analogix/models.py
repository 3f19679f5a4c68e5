from .extensions import db

# -------------------------------
# User authentication and profile
# -------------------------------

class User(db.Model):
    """
    Stores user authentication and profile information.

    Attributes:
        id (int): Primary key.
        username (str): Unique username for login.
        password (str): Hashed password.
        email (str): Unique email address.
        events (relationship): All calendar events for the user.
        deadlines (relationship): All deadlines for the user.
        stats (relationship): Aggregate study stats (one-to-one).
    """
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(100), nullable=False)  # Hashed password
    email = db.Column(db.String(100), unique=True, nullable=False)

    # Relationships
    events = db.relationship(
        "EventRow", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    deadlines = db.relationship(
        "DeadlineRow", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    stats = db.relationship(
        "StatsRow", backref="user", uselist=False, lazy=True, cascade="all, delete-orphan"
    )

# -------------------------------
# Calendar events
# -------------------------------

class EventRow(db.Model):
    """
    Remote copy of a calendar event (exam, assignment or plain event).

    Attributes:
        id (str): Opaque event id, identical to the locally cached record.
        user_id (int): Foreign key to User.
        title (str): Event title.
        date (str): Event timestamp (ISO format, local time).
        type (str): 'exam', 'assignment' or 'event'.
        subject (str): Optional subject name.
        description (str): Optional free text.
        source (str): 'manual' or 'import'.
    """
    __tablename__ = "events"

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("user.id", onupdate="CASCADE"), nullable=False
    )
    title = db.Column(db.String(500), nullable=False)
    date = db.Column(db.String(50), nullable=False)   # ISO format datetime
    type = db.Column(db.String(20), nullable=False, default="event")
    subject = db.Column(db.String(100), nullable=True)
    description = db.Column(db.Text, nullable=True)
    source = db.Column(db.String(20), nullable=True)

# -------------------------------
# Deadlines
# -------------------------------

class DeadlineRow(db.Model):
    """
    Remote copy of a user-added deadline. Kept apart from events on purpose.

    Attributes:
        id (str): Opaque deadline id.
        user_id (int): Foreign key to User.
        title (str): Deadline title.
        due_date (str): Due timestamp (ISO format, local time).
        subject (str): Optional subject name.
        priority (str): 'low', 'medium' or 'high'.
    """
    __tablename__ = "deadlines"

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    title = db.Column(db.String(500), nullable=False)
    due_date = db.Column(db.String(50), nullable=False)
    subject = db.Column(db.String(100), nullable=True)
    priority = db.Column(db.String(10), nullable=False, default="medium")

# -------------------------------
# Aggregate study stats
# -------------------------------

class StatsRow(db.Model):
    """
    One row of aggregate study statistics per user.

    Attributes:
        user_id (int): Primary key and foreign key to User.
        quizzes_done (int): Number of completed quizzes.
        current_streak (int): Current daily streak.
        accuracy (int): Mean quiz score, rounded.
        conversations_count (int): Number of tutor conversations.
        top_subject (str): Subject with the most conversations.
        subject_counts (dict): Conversations per subject.
        updated_at (str): Last write (ISO format).
    """
    __tablename__ = "user_stats"

    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), primary_key=True)
    quizzes_done = db.Column(db.Integer, nullable=False, default=0)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    accuracy = db.Column(db.Integer, nullable=False, default=0)
    conversations_count = db.Column(db.Integer, nullable=False, default=0)
    top_subject = db.Column(db.String(100), nullable=False, default="None")
    subject_counts = db.Column(db.JSON, nullable=False, default=dict)
    updated_at = db.Column(db.String(50), nullable=True)


# Remote table name -> model, used by the row-oriented remote interface
TABLES = {
    "events": EventRow,
    "deadlines": DeadlineRow,
    "user_stats": StatsRow,
}
