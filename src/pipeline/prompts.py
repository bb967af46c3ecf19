"""Prompt templates sent to the LLM.

The analysis prompt is the contract with the model: it names the three
output fields and the match threshold, and the parser in llm_scorer relies
on both.
"""

from src.core.schemas import CandidateProfile, JobRecord

MATCH_THRESHOLD = 70

RESUME_EXTRACTION_INSTRUCTION = (
    "You are an expert ATS. Extract all text from this document. "
    "Respond with only the raw text content from the resume, "
    "without any commentary or formatting."
)

_NO_RESUME_NOTICE = "(Candidate resume not provided for this analysis.)"


def _resume_block(resume_text: str | None) -> str:
    if not resume_text:
        return _NO_RESUME_NOTICE
    return (
        "Candidate's Full Resume:\n"
        "---RESUME---\n"
        f"{resume_text}\n"
        "---END RESUME---"
    )


def build_analysis_prompt(
    profile: CandidateProfile,
    job: JobRecord,
    resume_text: str | None = None,
) -> str:
    """Assemble the scoring prompt for one job. Pure, no I/O."""
    return (
        "You are an expert ATS resume screener. "
        "Analyze this job posting for a candidate.\n\n"
        "Candidate Profile:\n"
        f"- Preferred Title: {profile.preferred_title}\n"
        f"- Skills: {profile.skills}\n"
        f"- Preferred Location: {profile.location}\n"
        f"- Salary Expectation: {profile.salary}\n"
        f"- Remote Preference: {profile.remote_preference.value}\n\n"
        f"{_resume_block(resume_text)}\n\n"
        "Job Details:\n"
        f"- Title: {job.title}\n"
        f"- Company: {job.company_name or 'Not specified'}\n"
        f"- Location: {job.location or 'Not specified'}\n"
        f"- Description: {job.description or 'Not provided'}\n\n"
        "Based on the candidate's profile AND resume (if provided), "
        "provide a JSON object with:\n"
        '1. "match_score": A number from 0 (not a match) to 100 (perfect match). '
        "The score should heavily weigh the resume content against the job description.\n"
        '2. "reasoning": A brief, 2-3 sentence explanation for the score, '
        "highlighting key matches or mismatches from the resume and profile.\n"
        f'3. "is_match": a boolean, true if score is {MATCH_THRESHOLD} or higher.\n\n'
        "Return ONLY the JSON object. Example:\n"
        '{"match_score": 85, "reasoning": "The candidate\'s resume shows strong '
        "experience with React and Python, as listed in the job description. "
        'The preferred location also aligns.", "is_match": true}'
    )


def build_career_page_prompt(company_name: str) -> str:
    return (
        f'Find the exact career or jobs page URL for the company "{company_name}". '
        "I need the direct link to where the job listings are. "
        "If you are certain you found it, return only the URL. "
        'If you are unsure or cannot find it, return "NOT_FOUND".'
    )


def build_scrape_prompt(company_name: str, base_url: str, html: str) -> str:
    return (
        f'Based on the following HTML from the career page of "{company_name}", '
        "extract all job listings.\n"
        "For each job, provide the 'title', 'job_url', and 'location'.\n"
        "The 'job_url' must be an absolute URL. If you find a relative URL "
        '(e.g., "/jobs/123"), convert it to an absolute URL using the base URL: '
        f"{base_url}.\n"
        "Return the data as a valid JSON array of objects.\n"
        'Example: [{"title": "Software Engineer", "job_url": '
        '"https://company.com/jobs/123", "location": "New York, NY"}]\n'
        "If no jobs are found, return an empty array [].\n"
        "Do not include anything else in your response, only the JSON array.\n\n"
        "HTML content:\n"
        f"```html\n{html}\n```"
    )
