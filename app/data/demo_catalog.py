# 演示用体验目录（单机部署时作为 InMemoryCatalog 的初始数据）
from typing import List

from app.data.models import ExperienceRecord, Location


def demo_experiences() -> List[ExperienceRecord]:
    return [
        ExperienceRecord(
            experience_id="griffith-observatory",
            name="Griffith Observatory",
            category="observatory",
            price=0.0,
            location=Location(latitude=34.1184, longitude=-118.3004, state="CA", country="US"),
            rating=4.8,
            views=5200,
            bookings=310,
            review_count=1250,
            accessibility_tags=["wheelchair"],
            duration_minutes=120,
            indoor=True,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="kennedy-space-center",
            name="Kennedy Space Center Visitor Complex",
            category="museum",
            price=75.0,
            location=Location(latitude=28.5729, longitude=-80.6490, state="FL", country="US"),
            rating=4.7,
            views=4800,
            bookings=900,
            review_count=2100,
            accessibility_tags=["wheelchair", "audio-guide"],
            duration_minutes=360,
            indoor=False,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="smithsonian-air-space",
            name="Smithsonian National Air and Space Museum",
            category="museum",
            price=0.0,
            location=Location(latitude=38.8882, longitude=-77.0199, state="DC", country="US"),
            rating=4.8,
            views=6100,
            bookings=150,
            review_count=3400,
            accessibility_tags=["wheelchair", "audio-guide"],
            duration_minutes=180,
            indoor=True,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="california-science-center",
            name="California Science Center",
            category="museum",
            price=0.0,
            location=Location(latitude=34.0158, longitude=-118.2856, state="CA", country="US"),
            rating=4.6,
            views=3100,
            bookings=220,
            review_count=870,
            accessibility_tags=["wheelchair"],
            duration_minutes=180,
            indoor=True,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="joshua-tree-stargazing",
            name="Joshua Tree Night Sky Tour",
            category="stargazing",
            price=45.0,
            location=Location(latitude=33.8734, longitude=-115.9010, state="CA", country="US"),
            rating=4.9,
            views=1400,
            bookings=260,
            review_count=410,
            duration_minutes=150,
            indoor=False,
        ),
        ExperienceRecord(
            experience_id="space-center-houston",
            name="Space Center Houston",
            category="museum",
            price=35.0,
            location=Location(latitude=29.5518, longitude=-95.0981, state="TX", country="US"),
            rating=4.6,
            views=2900,
            bookings=480,
            review_count=960,
            accessibility_tags=["wheelchair"],
            duration_minutes=240,
            indoor=True,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="lowell-observatory",
            name="Lowell Observatory",
            category="observatory",
            price=29.0,
            location=Location(latitude=35.2029, longitude=-111.6646, state="AZ", country="US"),
            rating=4.7,
            views=1700,
            bookings=190,
            review_count=530,
            duration_minutes=120,
            indoor=False,
            family_friendly=True,
        ),
        ExperienceRecord(
            experience_id="mojave-air-space-port-tour",
            name="Mojave Air & Space Port Tour",
            category="tour",
            price=15.0,
            location=Location(latitude=35.0594, longitude=-118.1518, state="CA", country="US"),
            rating=4.3,
            views=600,
            bookings=70,
            review_count=95,
            duration_minutes=90,
        ),
    ]
