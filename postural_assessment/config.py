# Configuration Module - Procedural approach with module-level variables
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./postural_history.db")

# History Store Configuration
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "50"))  # Most recent records kept
DEFAULT_DISPLAY_NAME = "Anonymous patient"

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # INFO or QUIET

# Landmark Configuration
POSE_LANDMARK_COUNT = 33  # MediaPipe Pose topology
VISIBILITY_THRESHOLD = 0.5  # Points at or below this are insufficiently visible

# Upload Validation
ALLOWED_MEDIA_TYPES = ["image/jpeg", "image/png", "image/webp", "video/mp4", "video/webm"]
MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB

# Clinical Rule Thresholds
# tolerance: metric deviation below which nothing is emitted
# mild/moderate: severity band ceilings
# escalation: deviation beyond which risk factors, hypotheses and tests are emitted
RULE_THRESHOLDS = {
    "cervical": {
        "reference": 50.0,      # CVA degrees (normal: 48-52)
        "tolerance": 5.0,
        "mild": 8.0,
        "moderate": 15.0,
        "escalation": 8.0
    },
    "shoulder_height": {
        "tolerance": 3.0,       # % of shoulder-to-hip height
        "mild": 5.0,
        "moderate": 10.0,
        "escalation": 8.0
    },
    "shoulder_protraction": {
        "tolerance": 15.0,      # % of shoulder width
        "mild": 20.0,
        "moderate": 30.0,
        "escalation": 20.0
    },
    "pelvis": {
        "tolerance": 2.0,       # % of hip-to-knee height
        "mild": 3.0,
        "moderate": 6.0,
        "escalation": 4.0
    },
    "knee_alignment": {
        "tolerance": 5.0,       # degrees away from a straight hip-knee-ankle line
        "mild": 8.0,
        "moderate": 15.0,
        "escalation": 8.0
    },
    "arm_elevation": {
        "tolerance": 15.0,      # degrees difference between sides
        "escalation": 20.0
    }
}

# Recommendation Rules (checked in this order)
RECOMMENDATION_RULES = {
    "cervical_anteriorization": {
        "label": "Forward head posture",
        "actions": {
            "strengthening": ["Deep neck flexor strengthening (3x10 reps, 10s hold)"],
            "mobility": ["Brachial plexus neural mobilization and suboccipital stretching"],
            "functional": ["Postural re-education with biofeedback to correct the CVA"]
        }
    },
    "shoulder_protraction": {
        "label": "Shoulder protraction",
        "actions": {
            "strengthening": ["Rhomboid and middle trapezius strengthening (3x15 reps with resistance)"],
            "mobility": ["Myofascial release and targeted pectoralis minor stretching"],
            "proprioception": ["Scapular awareness exercises with tactile feedback"]
        }
    },
    "pelvic_asymmetry": {
        "label": "Pelvic asymmetry",
        "actions": {
            "strengthening": ["Unilateral gluteus medius strengthening with functional progression"],
            "proprioception": ["Pelvic stabilization training on unstable surfaces"],
            "functional": ["Movement pattern correction during activities of daily living"]
        }
    },
    "knee_valgus": {
        "label": "Dynamic knee valgus",
        "actions": {
            "strengthening": ["Gluteus medius and hip external rotator strengthening"],
            "mobility": ["Iliotibial band release and adductor stretching"],
            "proprioception": ["Neuromuscular control training focused on knee alignment"],
            "functional": ["Squat progression with dynamic valgus correction"]
        }
    }
}

FALLBACK_RECOMMENDATIONS = {
    "strengthening": "Core and postural stabilizer strengthening program",
    "mobility": "Global mobility routine focused on the posterior chain",
    "proprioception": "Progressive balance and proprioception exercises",
    "functional": "Fundamental movement pattern training"
}

# Exercise Templates (keyed by finding region)
EXERCISE_TEMPLATES = {
    "cervical": {
        "name": "Cervical Retraction",
        "description": "Corrects head posture and strengthens the deep cervical muscles.",
        "duration": "10 seconds per repetition",
        "repetitions": "10-15 repetitions",
        "frequency": "3x per day",
        "precautions": ["Do not force the movement", "Stop if you feel dizzy"],
        "target_areas": ["Cervical", "Head posture"]
    },
    "shoulder": {
        "name": "Scapular Retraction",
        "description": "Strengthens rhomboids and middle trapezius to correct scapular protraction.",
        "duration": "5-8 seconds per contraction",
        "repetitions": "12-15 repetitions",
        "frequency": "2x per day",
        "precautions": ["Keep the shoulders relaxed", "Avoid shrugging"],
        "target_areas": ["Scapular", "Shoulder posture"]
    },
    "pelvis": {
        "name": "Pelvic Tilt",
        "description": "Mobilizes and controls the pelvis, improving lumbopelvic alignment.",
        "duration": "5 seconds in each position",
        "repetitions": "10-12 repetitions",
        "frequency": "2-3x per day",
        "precautions": ["Slow, controlled movement", "Do not force the range"],
        "target_areas": ["Pelvis", "Lumbar"]
    },
    "knee": {
        "name": "Gluteus Medius Strengthening",
        "description": "Side-lying gluteus medius work to correct dynamic knee valgus.",
        "duration": "3-5 seconds per lift",
        "repetitions": "15-20 repetitions each side",
        "frequency": "1x per day",
        "precautions": ["Keep the body aligned", "Do not rotate the hip"],
        "target_areas": ["Gluteus medius", "Knee stability"]
    }
}

GENERAL_EXERCISE = {
    "name": "Posterior Chain Stretch",
    "description": "Global stretch of the posterior muscle chain to improve flexibility.",
    "duration": "30-60 seconds",
    "repetitions": "3-4 repetitions",
    "frequency": "1x per day",
    "precautions": ["Do not force the stretch", "Breathe normally"],
    "target_areas": ["General flexibility", "Posterior chain"]
}

# Posture Guide Bands (single-frame scoring, normalized coordinates x100)
POSTURE_GUIDE_BANDS = {
    "head_alignment": {"good": 3, "warning": 8},       # nose offset from shoulder midline
    "shoulder_level": {"good": 2, "warning": 5},       # shoulder height difference
    "shoulder_posture": {"low": 15, "high": 25},       # shoulder midpoint below nose
    "neck_angle": {"good": (75, 90), "warning": 60}    # degrees from horizontal
}

POSTURE_GUIDE_POINTS = {
    "good": 25,
    "warning": 15,
    "error": 5
}

# Dashboard Configuration
CONFIDENCE_BANDS = {
    "high": 0.8,
    "medium": 0.6
}
RECENT_WINDOW_DAYS = 7
COMMON_FINDINGS_LIMIT = 4
COMMON_RECOMMENDATIONS_LIMIT = 6
