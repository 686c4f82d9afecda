"""
Seed catalog: the starting set of guidance rules and the football
recruiting calendar.

Loaded by migration 0002 and by `seed_catalog(db)` for local setups.
Re-running is safe: rows are matched on task_key / event_key and existing
rows are left untouched.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from recruit_timeline.models.seasonal_event import SeasonalEvent
from recruit_timeline.models.task_definition import TaskDefinition, TaskPriority

logger = logging.getLogger(__name__)

_ALL_ROLES = ["high_school", "transfer_portal"]


TASK_DEFINITIONS: list[dict] = [
    # --- onboarding ---
    {
        "task_key": "complete_basic_profile",
        "title": "Complete Your Basic Profile",
        "description": "Add your name, graduation year, position, and high school information.",
        "why_it_matters": (
            "Coaches need basic information to identify and evaluate potential recruits. "
            "An incomplete profile signals lack of seriousness."
        ),
        "how_to_complete": "Go to your profile settings and fill in the required fields. This takes about 3 minutes.",
        "estimated_minutes": 3,
        "base_priority": TaskPriority.critical,
        "dependencies": [],
        "triggers": [
            {"kind": "field_missing", "facts": ["first_name", "graduation_year", "position", "high_school_name"]},
        ],
        "blocks_sharing": True,
        "applicable_roles": _ALL_ROLES,
    },
    {
        "task_key": "add_profile_photo",
        "title": "Upload Your Profile Photo",
        "description": "Add a clear, professional photo of yourself in uniform or workout gear.",
        "why_it_matters": (
            "A good photo helps coaches remember you and makes your profile more engaging. "
            "First impressions matter."
        ),
        "how_to_complete": (
            "Upload a high-quality photo (at least 800x800px) showing your face clearly. "
            "Avoid selfies or casual photos."
        ),
        "estimated_minutes": 5,
        "base_priority": TaskPriority.high,
        "dependencies": ["complete_basic_profile"],
        "triggers": [{"kind": "field_missing", "facts": ["has_profile_image"]}],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
    {
        "task_key": "add_contact_info",
        "title": "Add Your Contact Information",
        "description": "Add an email address and phone number coaches can reach you at.",
        "why_it_matters": "Interested coaches need a direct way to reach you. No contact info means no follow-up.",
        "how_to_complete": "Add a personal email you check daily and a phone number to your profile.",
        "estimated_minutes": 2,
        "base_priority": TaskPriority.high,
        "dependencies": ["complete_basic_profile"],
        "triggers": [{"kind": "field_missing", "facts": ["has_contact_info"]}],
        "blocks_sharing": True,
        "applicable_roles": _ALL_ROLES,
    },
    # --- building ---
    {
        "task_key": "upload_highlight_video",
        "title": "Add Your Highlight Video",
        "description": "Upload or link to your best football highlights (3-5 minutes maximum).",
        "why_it_matters": (
            "Your highlight video is the most important part of your recruiting profile. "
            "Coaches watch film before everything else."
        ),
        "how_to_complete": (
            "Upload your video to YouTube or Hudl, then add the link to your profile. "
            "Keep it short and show your best plays."
        ),
        "estimated_minutes": 15,
        "base_priority": TaskPriority.critical,
        "dependencies": ["complete_basic_profile"],
        "triggers": [
            {"kind": "field_missing", "facts": ["has_highlight_video"]},
            {"kind": "seasonal_match", "events": ["recruiting_season_peak"]},
        ],
        "blocks_sharing": True,
        "applicable_roles": _ALL_ROLES,
    },
    {
        "task_key": "add_physical_measurements",
        "title": "Add Your Height, Weight & Testing Numbers",
        "description": "Enter your height, weight, 40-yard dash and vertical jump.",
        "why_it_matters": "Coaches filter recruits by size and speed before they ever watch film.",
        "how_to_complete": "Use verified numbers from a camp or combine when you have them. Update after each test.",
        "estimated_minutes": 5,
        "base_priority": TaskPriority.medium,
        "dependencies": ["complete_basic_profile"],
        "triggers": [{"kind": "field_missing", "facts": ["has_physical_measurements", "has_performance_metrics"]}],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
    {
        "task_key": "add_gpa_academics",
        "title": "Add Your GPA & Academic Info",
        "description": "Include your current GPA and any academic achievements.",
        "why_it_matters": (
            "Academic eligibility is required for college football. "
            "Many programs have minimum GPA requirements."
        ),
        "how_to_complete": "Enter your current cumulative GPA. Be honest - coaches will verify this information.",
        "estimated_minutes": 2,
        "base_priority": TaskPriority.high,
        "dependencies": [],
        "triggers": [{"kind": "field_missing", "facts": ["gpa"]}],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
    {
        "task_key": "upload_transcript",
        "title": "Upload Your Official Transcript",
        "description": "Add your most recent official high school or college transcript.",
        "why_it_matters": "Coaches need to verify your academic standing for eligibility and scholarship considerations.",
        "how_to_complete": (
            "Request an official transcript from your school and upload the PDF. "
            "Keep it current (within 6 months)."
        ),
        "estimated_minutes": 10,
        "base_priority": TaskPriority.medium,
        "dependencies": ["add_gpa_academics"],
        "triggers": [
            {"kind": "field_missing", "facts": ["has_transcript"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
    # --- active recruiting ---
    {
        "task_key": "create_coach_contact_list",
        "title": "Build Your Coach Contact List",
        "description": "Research and compile contact information for 20-30 college coaches.",
        "why_it_matters": "You need to be proactive in recruiting. Coaches receive hundreds of emails - cast a wide net.",
        "how_to_complete": (
            "Research schools that match your academic and athletic level. "
            "Find position coaches and recruiting coordinators."
        ),
        "estimated_minutes": 45,
        "base_priority": TaskPriority.high,
        "dependencies": ["upload_highlight_video"],
        "triggers": [
            {"kind": "profile_completion_at_least", "threshold": 70},
            {"kind": "seasonal_match", "events": ["recruiting_season_start"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": ["high_school"],
    },
    {
        "task_key": "send_intro_emails",
        "title": "Send Introduction Emails to Coaches",
        "description": "Reach out to coaches with a personalized introduction email.",
        "why_it_matters": (
            "Most college recruits are found through self-promotion. "
            "Coaches need to know you exist and are interested."
        ),
        "how_to_complete": "Use our email templates to introduce yourself. Include your profile link and highlight video.",
        "estimated_minutes": 30,
        "base_priority": TaskPriority.high,
        "dependencies": ["create_coach_contact_list"],
        "triggers": [
            {"kind": "profile_completion_at_least", "threshold": 80},
            {"kind": "seasonal_match", "events": ["recruiting_season_peak"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": ["high_school"],
    },
    # --- transfer portal ---
    {
        "task_key": "add_ncaa_eligibility",
        "title": "Add NCAA Eligibility Information",
        "description": "Include your NCAA ID and eligibility status for transfer portal.",
        "why_it_matters": (
            "Transfer portal requires verified NCAA eligibility. "
            "Coaches need this info to evaluate transfer timeline."
        ),
        "how_to_complete": "Log into your NCAA account and add your ID number. Include current eligibility years remaining.",
        "estimated_minutes": 5,
        "base_priority": TaskPriority.critical,
        "dependencies": [],
        "triggers": [{"kind": "field_missing", "facts": ["has_ncaa_id"]}],
        "blocks_sharing": True,
        "applicable_roles": ["transfer_portal"],
    },
    {
        "task_key": "update_stats_performance",
        "title": "Update Your Performance Stats",
        "description": "Add your latest game and season statistics.",
        "why_it_matters": "Current stats show your recent performance level and help coaches evaluate your potential fit.",
        "how_to_complete": "Include stats from your most recent full season. Be accurate - coaches will verify with film.",
        "estimated_minutes": 10,
        "base_priority": TaskPriority.medium,
        "dependencies": ["upload_highlight_video"],
        "triggers": [
            {"kind": "seasonal_match", "events": ["transfer_portal_peak"]},
            {"kind": "engagement_level_in", "levels": ["high"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
    # --- maintenance ---
    {
        "task_key": "update_senior_film",
        "title": "Update with Senior Season Highlights",
        "description": "Add your best plays from senior year to your highlight reel.",
        "why_it_matters": (
            "Senior film shows your most recent development and current ability level. "
            "This is what coaches will judge you on."
        ),
        "how_to_complete": (
            "Create a new highlight video with your best senior season plays. "
            "Replace or supplement your existing video."
        ),
        "estimated_minutes": 20,
        "base_priority": TaskPriority.high,
        "dependencies": ["upload_highlight_video"],
        "triggers": [
            {"kind": "graduation_proximity", "years_threshold": 0},
            {"kind": "seasonal_match", "events": ["early_signing_period"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": ["high_school"],
    },
    {
        "task_key": "follow_up_coaches",
        "title": "Follow Up with Interested Coaches",
        "description": "Send update emails to coaches who have shown interest.",
        "why_it_matters": "Recruiting is about building relationships. Regular communication keeps you on coaches' radar.",
        "how_to_complete": (
            "Send brief updates about recent games, achievements, or camp performances "
            "to coaches in your pipeline."
        ),
        "estimated_minutes": 15,
        "base_priority": TaskPriority.medium,
        "dependencies": ["send_intro_emails"],
        "triggers": [
            {"kind": "seasonal_match", "events": ["summer_camp_season"]},
        ],
        "blocks_sharing": False,
        "applicable_roles": _ALL_ROLES,
    },
]


SEASONAL_EVENTS: list[dict] = [
    {
        "event_key": "recruiting_season_start",
        "title": "College Football Recruiting Season Begins",
        "description": "Coaches begin active recruiting for next year's class.",
        "start_month": 6, "start_day": 15, "end_month": 8, "end_day": 31,
        "priority_boost": 2,
    },
    {
        "event_key": "recruiting_season_peak",
        "title": "Peak Recruiting Season",
        "description": "Highest activity period for coach-player communication.",
        "start_month": 8, "start_day": 1, "end_month": 10, "end_day": 31,
        "priority_boost": 3,
    },
    {
        "event_key": "early_signing_period",
        "title": "Early National Signing Day",
        "description": "First opportunity for high school players to sign with colleges.",
        "start_month": 12, "start_day": 15, "end_month": 12, "end_day": 17,
        "priority_boost": 4,
    },
    {
        "event_key": "transfer_portal_peak",
        "title": "Transfer Portal Peak Activity",
        "description": "Highest volume of transfer portal entries and commitments.",
        "start_month": 12, "start_day": 1, "end_month": 2, "end_day": 28,
        "priority_boost": 3,
    },
    {
        "event_key": "summer_camp_season",
        "title": "College Football Camp Season",
        "description": "Prime time for visiting colleges and attending camps.",
        "start_month": 6, "start_day": 1, "end_month": 7, "end_day": 31,
        "priority_boost": 2,
    },
]


def seed_catalog(db: Session, sport: str = "football") -> tuple[int, int]:
    """
    Insert any missing seed rows. Returns (definitions_added, events_added).
    Flushes only; the caller owns the commit.
    """
    known_tasks = {key for (key,) in db.query(TaskDefinition.task_key).all()}
    added_tasks = 0
    for row in TASK_DEFINITIONS:
        if row["task_key"] in known_tasks:
            continue
        db.add(TaskDefinition(applicable_sports=[sport], **row))
        added_tasks += 1

    known_events = {key for (key,) in db.query(SeasonalEvent.event_key).all()}
    added_events = 0
    for row in SEASONAL_EVENTS:
        if row["event_key"] in known_events:
            continue
        db.add(SeasonalEvent(sport=sport, **row))
        added_events += 1

    db.flush()
    logger.info("Seeded %d task definitions, %d seasonal events", added_tasks, added_events)
    return added_tasks, added_events
