from __future__ import annotations

COVER_LETTER_SYSTEM_INSTRUCTION = (
    "You are an expert career assistant who writes personalised, professional "
    "cover letters for student placement applications."
)

ANSWER_SYSTEM_INSTRUCTION = (
    "You are a helpful assistant that creates compelling, professional, and "
    "tailored answers for placement applications."
)

NONE_PROVIDED = "None provided"

COVER_LETTER_PROMPT = """
You are an expert career assistant. Write a personalised and professional cover letter using the provided information.

Individual Information:
- Full Name: {full_name}
- University: {university}
- Year of Study: {year_of_study}
- Degree: {degree}

Skills and Experience:
- Technical Skills: {technical_skills}
- Soft Skills: {soft_skills}
- Extra Curriculars:
{extra_curriculars}
- Personal Projects:
{personal_projects}

Job Information:
- Job Title: {job_title}
- Category: {category}
- Description: {description}

Company Information:
- Company Name: {company_name}

Instructions:
- Analyse the job description and match it with the candidate's background.
- Highlight the most relevant technical skills, soft skills, and projects.
- Structure the cover letter in 3 sections:
  1. Introduction: why the candidate is excited about the role and company.
  2. Main Body: the candidate's key qualifications and experiences that fit the job.
  3. Conclusion: closing remarks and a call to action.
- Keep the tone professional but engaging.
- Return only the cover letter text with no extra commentary.
""".strip()

ANSWER_PROMPT = """
You are helping a student answer a placement application question.
Your goal is to create a response that aligns with:
1. The company and its culture.
2. The job role and description.
3. The student's personal background, skills, and experiences.

Company: {company_name}
Job Title: {job_title}
Job Description: {description}

Student's Profile:
- Technical Skills: {technical_skills}
- Soft Skills: {soft_skills}
- Extra Curriculars:
{extra_curriculars}
- Personal Projects:
{personal_projects}

Application Question:
"{question}"
""".strip()

ANSWER_ADJUSTMENT_CLAUSE = "User has requested this adjustment: {comment}"

ANSWER_WORD_LIMIT_CLAUSE = "Please keep the answer under {word_limit} words."

ANSWER_GUIDANCE = """
Your response should:
- Be highly relevant to the role and company.
- Demonstrate the student's unique fit using their skills and experience.
- Be structured clearly and professionally, with a natural and authentic tone.
""".strip()
