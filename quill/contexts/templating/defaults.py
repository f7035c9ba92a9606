"""
Default values for QUILL templates and previews.

Provides shared defaults used by:
- scripts/render_template.py (sample data when no resume file is given)
- tests/integration (every built-in template is rendered against the sample resume)
"""

import copy
from typing import Any, Dict

from quill.contexts.templating.resume_data_structure import ResumeData

# Sample resume used for template gallery previews
SAMPLE_RESUME: Dict[str, Any] = {
    "fullName": "John Smith",
    "email": "john.smith@email.com",
    "phone": "(555) 123-4567",
    "location": "San Francisco, CA",
    "linkedIn": "linkedin.com/in/johnsmith",
    "website": "johnsmith.dev",
    "summary": (
        "Experienced software engineer with 5+ years of experience in full-stack development. "
        "Passionate about creating scalable web applications and leading development teams."
    ),
    "profileImage": (
        "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e"
        "?w=150&h=150&fit=crop&crop=face"
    ),
    "experiences": [
        {
            "id": "1",
            "jobTitle": "Senior Software Engineer",
            "company": "Tech Solutions Inc.",
            "location": "San Francisco, CA",
            "startDate": "2021-03-01",
            "endDate": "",
            "current": True,
            "description": (
                "Lead a team of 4 developers in building scalable web applications using "
                "React and Node.js. Implemented CI/CD pipelines and improved deployment "
                "efficiency by 40%."
            ),
        },
        {
            "id": "2",
            "jobTitle": "Software Developer",
            "company": "StartupXYZ",
            "location": "San Jose, CA",
            "startDate": "2019-06-01",
            "endDate": "2021-02-28",
            "current": False,
            "description": (
                "Developed and maintained multiple client-facing applications. "
                "Built RESTful APIs and integrated third-party services."
            ),
        },
    ],
    "education": [
        {
            "id": "1",
            "degree": "Bachelor of Science in Computer Science",
            "school": "Stanford University",
            "location": "Stanford, CA",
            "graduationDate": "2019-05-01",
            "gpa": "3.8",
        }
    ],
    "skills": [
        {"id": "1", "name": "JavaScript", "level": "expert"},
        {"id": "2", "name": "React", "level": "expert"},
        {"id": "3", "name": "Node.js", "level": "advanced"},
        {"id": "4", "name": "Python", "level": "intermediate"},
        {"id": "5", "name": "AWS", "level": "intermediate"},
    ],
}


def get_sample_resume() -> ResumeData:
    """Fresh ResumeData built from SAMPLE_RESUME (safe to modify)."""
    return ResumeData.from_dict(copy.deepcopy(SAMPLE_RESUME))
