"""Fixed instruction prompts for structuring job postings and resumes."""

JOB_SYSTEM_PROMPT = (
    "You are a job description parsing expert. Extract ALL structured "
    "information from the job posting text.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with these fields. "
    "Include every field; use \"\" or [] when the posting says nothing:\n"
    "- job_title (string): official job title\n"
    "- company_name (string)\n"
    "- location (string): city, state, country, or remote status\n"
    '- employment_type (string): "full-time", "part-time", "contract", '
    '"temporary" or "internship"\n'
    '- experience_level (string): e.g. "entry", "mid", "senior", "lead", '
    "or years required such as \"5+ years\"\n"
    "- salary_range (string)\n"
    "- remote_work (boolean): true if the role can be done remotely\n"
    "- posted_date (string)\n"
    "- job_description (string): 2-4 sentence summary of the role\n"
    "- responsibilities (list[str]): one duty per item\n"
    "- requirements (list[str]): required qualifications, one per item, "
    "including education and years of experience\n"
    "- nice_to_have (list[str]): preferred qualifications\n"
    "- skills (list[str]): technical and soft skills, tools, languages, "
    "frameworks; split comma-separated lists into items\n"
    "- benefits (list[str])\n"
    "- ats_keywords (list[str]): key industry terms a candidate should use\n\n"
    "Rules:\n"
    "- Separate required from preferred qualifications when the posting does.\n"
    "- Start directly with { and end with }. No trailing commas."
)

RESUME_SYSTEM_PROMPT = (
    "You are a resume parsing expert. Extract structured professional data "
    "from the resume text provided.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with this shape:\n"
    "{\n"
    '  "contact_info": {"full_name": "", "email": "", "phone": "", '
    '"location": "City, State/Country", "linkedin": ""},\n'
    '  "summary": "professional summary or objective",\n'
    '  "experience": [{"title": "", "company": "", "location": "", '
    '"start_date": "MM/YYYY", "end_date": "MM/YYYY or Present", '
    '"description": ["bullet"]}],\n'
    '  "education": [{"institution": "", "degree": "e.g. Bachelor of Science", '
    '"field": "", "graduation_date": "YYYY"}],\n'
    '  "skills": ["skill"],\n'
    '  "projects": [{"name": "", "description": "", "technologies": ["tech"]}]\n'
    "}\n\n"
    "Use \"\" or [] for anything the resume does not state. List experience "
    "most recent first. Start directly with { and end with }."
)

SECTION_FOCUS: dict[str, str] = {
    "contact": (
        "Focus on contact information: name, email, phone, location and "
        "LinkedIn. This section is likely at the beginning of the resume."
    ),
    "summary": "Focus on the professional summary or objective statement.",
    "experience": (
        "Focus on work experience entries: job titles, companies, dates, and "
        "bullet points of responsibilities and achievements."
    ),
    "education": (
        "Focus on education: institutions, degrees, fields of study and "
        "graduation dates."
    ),
    "skills": "Focus on skills, which may be presented as lists or categories.",
    "projects": (
        "Focus on projects: names, descriptions and technologies used."
    ),
}


def job_user_prompt(text: str) -> str:
    return f"Parse this job description:\n\n{text}"


def page_user_prompt(url: str, text: str) -> str:
    """Prompt for a whole page whose job content could not be isolated."""
    return (
        "Parse the job posting contained in this webpage content. Use only "
        "information the page states; ignore navigation, cookie notices and "
        f"footers.\n\nURL: {url}\n\nWEBPAGE CONTENT:\n{text}"
    )


def resume_user_prompt(text: str, section_kind: str | None = None) -> str:
    focus = SECTION_FOCUS.get(section_kind or "", "")
    if section_kind is None:
        return f"Parse this resume:\n\n{text}"
    header = "You are parsing one section of a longer resume."
    if focus:
        header += f" {focus}"
    return f"{header}\n\nResume section:\n\n{text}"
