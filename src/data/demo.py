"""Built-in provider catalogue for demo users and offline fallback."""
from typing import List

from .records import STATUS_APPROVED, ProviderLocation, ProviderRecord

DEMO_PROVIDERS: List[ProviderRecord] = [
    ProviderRecord(
        id="1",
        business_name="Harmony Music Academy",
        owner_name="Anita Sharma",
        email="info@harmonymusic.com",
        phone="+91 98765 43210",
        whatsapp="+91 98765 43210",
        description=(
            "Professional music education with experienced instructors. We offer piano, guitar, "
            "violin, and vocal training for all age groups."
        ),
        categories=("music",),
        location=ProviderLocation(city="Gurgaon", area="Sector 15", latitude=28.4595, longitude=77.0266),
        status=STATUS_APPROVED,
        is_published=True,
        created_at="2024-01-10T09:00:00Z",
    ),
    ProviderRecord(
        id="2",
        business_name="Champions Sports Club",
        owner_name="Rahul Verma",
        phone="+91 98765 43211",
        whatsapp="+91 98765 43211",
        description=(
            "Complete sports training facility offering football, cricket, basketball, and swimming "
            "coaching for kids and teens."
        ),
        categories=("sports",),
        location=ProviderLocation(city="Gurgaon", area="Phase 2", latitude=28.4421, longitude=77.0382),
        status=STATUS_APPROVED,
        is_published=True,
        created_at="2024-01-12T09:00:00Z",
    ),
    ProviderRecord(
        id="3",
        business_name="CodeCraft Academy",
        owner_name="Priya Nair",
        email="hello@codecraft.in",
        phone="+91 98765 43212",
        description=(
            "Making coding fun and accessible for kids. We teach Python, Scratch, web development, "
            "and robotics through interactive projects."
        ),
        categories=("coding",),
        location=ProviderLocation(
            city="Gurgaon", area="Online", latitude=28.4595, longitude=77.0266, online_only=True
        ),
        status=STATUS_APPROVED,
        is_published=True,
        created_at="2024-01-15T09:00:00Z",
    ),
    ProviderRecord(
        id="4",
        business_name="Bright Minds Tuition Center",
        owner_name="Suresh Gupta",
        phone="+91 98765 43213",
        description=(
            "Expert academic coaching for all subjects. Specialized in CBSE, ICSE curriculum with "
            "proven track record of excellent results."
        ),
        categories=("tuition",),
        location=ProviderLocation(city="Gurgaon", area="Sector 22", latitude=28.4743, longitude=77.0465),
        status=STATUS_APPROVED,
        is_published=True,
        created_at="2024-01-18T09:00:00Z",
    ),
]
