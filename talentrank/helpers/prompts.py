CV_SYSTEM_PROMPT = (
    "You are an AI assistant that extracts only the data explicitly mentioned in the provided CV. "
    "Do not hypothesize or add any additional data. Answer directly without any preamble."
)

JD_SYSTEM_PROMPT = (
    "You are an AI assistant that extracts only the data explicitly mentioned in the provided job description. "
    "Do not infer or add any additional details. Answer directly without any preamble."
)

GENERIC_SYSTEM_PROMPT = "You are an AI assistant that extracts useful insights."

SYSTEM_PROMPTS = {
    "cv": CV_SYSTEM_PROMPT,
    "jd": JD_SYSTEM_PROMPT,
}

CV_QUESTIONS = {
    "skills": (
        "Based solely on the provided CV, extract and list the candidate's skills exactly as mentioned. "
        "Do not infer or add any additional skills."
    ),
    "education": (
        "Based solely on the provided CV, extract and list the candidate's education details exactly as stated. "
        "Do not hypothesize or add extra details."
    ),
    "responsibilities": (
        "Based solely on the provided CV, extract and list the responsibilities the candidate has handled in the past. "
        "Do not add any responsibilities that are not explicitly mentioned."
    ),
    "experience": (
        "Based solely on the provided CV, extract and list the candidate's work experience exactly as presented. "
        "Do not infer or add any extra information."
    ),
}

JD_QUESTIONS = {
    "skills": (
        "Based solely on the provided job description, extract and list the required skills exactly as mentioned. "
        "Do not add or infer any additional skills."
    ),
    "education": (
        "Based solely on the provided job description, extract and list the required education details exactly as stated. "
        "Do not add or infer any extra details."
    ),
    "responsibilities": (
        "Based solely on the provided job description, extract and list the responsibilities required for the job exactly as mentioned. "
        "Do not add any additional responsibilities."
    ),
    "experience": (
        "Based solely on the provided job description, extract and list the required work experience exactly as presented. "
        "Do not infer or add any extra details."
    ),
}

QUESTIONS = {
    "cv": CV_QUESTIONS,
    "jd": JD_QUESTIONS,
}

EXTRACT_PROMPT = """Text:

{text}

Question: {question}"""

SCORE_SYSTEM_PROMPT = "You are an expert evaluator for candidate profiles."

SCORE_PROMPT = """Evaluate the candidate's {category} for the position "{position}".

Act like you are the ATS score calculator. Give the score based on that.
Candidate's {category} content: "{text}"

Score the candidate's {category} using these criteria:
1. Relevance (0-40): How well does the content address the essential requirements? (0 if completely irrelevant, 40 if perfectly aligned.)
2. Depth & Detail (0-30): How comprehensive is the provided information? (0 for minimal detail, 30 for exceptional depth.)
3. Clarity & Specificity (0-20): How clear and specific is the description? (0 if vague, 20 if very specific.)
4. Impact (0-10): How impressive and compelling is the information? (0 if unimpressive, 10 if outstanding.)

For inferior candidate data, the total score should be below 20; for superior data, above 80. Return only the final numeric score (0 to 100) with no extra commentary.
"""

FEEDBACK_PROMPT = (
    "Based on the provided user CV and the top candidate CVs, provide specific and actionable feedback on what areas "
    "the user should improve to better align with or exceed the top candidates. Focus on key sections such as skills, "
    "education, responsibilities, and work experience. Give the feedback in a single paragraph, addressed to the "
    "person as \"you\", and do not mention other candidates by name or id."
)

FEEDBACK_DOCUMENT = """User CV:
{cv}

Top {count} Candidate CVs:
{others}"""
