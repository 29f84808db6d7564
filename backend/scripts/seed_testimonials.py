#!/usr/bin/env python3
"""
Replace all testimonials with the landing page sample set.

Usage:
    python seed_testimonials.py
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings
from app.db.session import Database
from app.models.testimonial import Testimonial
from app.services.testimonial_service import avatar_url

TESTIMONIALS = [
    {
        "name": "Sarah Johnson",
        "role": "Movie Enthusiast",
        "rating": 5,
        "text": "MovieFlix has completely transformed my movie nights! The collection is incredible and the "
                "streaming quality is top-notch. I love the personalized recommendations!",
    },
    {
        "name": "Michael Chen",
        "role": "Film Critic",
        "rating": 5,
        "text": "As a film critic, I've used many streaming platforms. MovieFlix stands out with its curated "
                "selection and seamless user experience. The genre-based recommendations are spot on!",
    },
    {
        "name": "Emily Rodriguez",
        "role": "Binge Watcher",
        "rating": 5,
        "text": "I can't get enough of MovieFlix! The interface is so intuitive and I always find something "
                "new to watch. The 'My List' feature helps me keep track of everything!",
    },
    {
        "name": "David Kim",
        "role": "Tech Reviewer",
        "rating": 5,
        "text": "The streaming quality and loading speeds are impressive. MovieFlix works flawlessly across "
                "all my devices. Best investment for entertainment!",
    },
    {
        "name": "Jessica Williams",
        "role": "Family User",
        "rating": 5,
        "text": "Perfect for family movie nights! There's something for everyone, from kids' animations to "
                "classic dramas. The parental controls give me peace of mind.",
    },
]


def main():
    database = Database(settings.DATABASE_URL)
    database.init_db()
    db = database.session()
    try:
        removed = db.query(Testimonial).delete()
        print(f"🗑️  Cleared {removed} existing testimonials")

        for data in TESTIMONIALS:
            db.add(Testimonial(avatar=avatar_url(data["name"]), is_approved=True, **data))
            print(f"✅ Added testimonial from {data['name']}")
        db.commit()
        print("\n🎉 Successfully seeded testimonials!")
    except Exception as e:
        print(f"❌ Error seeding testimonials: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
