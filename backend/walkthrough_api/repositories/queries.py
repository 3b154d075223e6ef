"""
Exact SQL for the review-status transitions.

Every write to walkthroughs.review_status goes through one of these
conditional updates. The WHERE clause pins the expected current status, so
a statement that matches zero rows means another actor got there first (or
the precondition never held) and the caller raises InvalidTransition.
Portable across PostgreSQL and SQLite; bind :now with a DateTime type.
"""

# ---------------------------------------------------------------------------
# 1) Assign or clear the reviewer while the review has not started.
#    A reviewer moves the row to pending; clearing it returns to not-required.
#    in-progress and completed rows never match, so they are never regressed.
#    notification_sent is cleared; only a delivered email sets it again.
# ---------------------------------------------------------------------------
SQL_ASSIGN_REVIEWER = """
UPDATE walkthroughs
SET assigned_reviewer = :reviewer_id,
    review_status = CASE WHEN :reviewer_id IS NULL THEN 'not-required' ELSE 'pending' END,
    notification_sent = false,
    updated_at = :now
WHERE id = :walkthrough_id
  AND review_status IN ('not-required', 'pending');
"""

# ---------------------------------------------------------------------------
# 2) Start: pending -> in-progress, stamps review_started_at
# ---------------------------------------------------------------------------
SQL_START_REVIEW = """
UPDATE walkthroughs
SET review_status = 'in-progress',
    review_started_at = :now,
    updated_at = :now
WHERE id = :walkthrough_id
  AND review_status = 'pending';
"""

# ---------------------------------------------------------------------------
# 3) Complete: in-progress -> completed, stamps review_completed_at and
#    persists the reviewer's feedback in the same statement. Clears
#    notification_sent so it tracks the completion email alone.
# ---------------------------------------------------------------------------
SQL_COMPLETE_REVIEW = """
UPDATE walkthroughs
SET review_status = 'completed',
    review_completed_at = :now,
    reviewer_feedback = :reviewer_feedback,
    reviewer_comments = :reviewer_comments,
    notification_sent = false,
    updated_at = :now
WHERE id = :walkthrough_id
  AND review_status = 'in-progress';
"""

# ---------------------------------------------------------------------------
# 4) Draft save: reviewer text only, status untouched
# ---------------------------------------------------------------------------
SQL_SAVE_REVIEW_DRAFT = """
UPDATE walkthroughs
SET reviewer_feedback = :reviewer_feedback,
    reviewer_comments = :reviewer_comments,
    updated_at = :now
WHERE id = :walkthrough_id;
"""

# ---------------------------------------------------------------------------
# 5) Notification bookkeeping
# ---------------------------------------------------------------------------
SQL_MARK_NOTIFICATION_SENT = """
UPDATE walkthroughs
SET notification_sent = :sent
WHERE id = :walkthrough_id;
"""
