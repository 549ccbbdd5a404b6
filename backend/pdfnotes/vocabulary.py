"""
PDF Notes Backend - Category & Subject Vocabulary
===================================================

What:  The closed set of categories and the subject -> category lookup table.
How:   A Pydantic model built once from settings and handed to the upload
       validator and the vocabulary endpoint. Nothing reads a global table.
Who:   Settings (default + env override), UploadValidator, GET /api/notes/vocabulary.

The database does not enforce these values; notes uploaded before a
vocabulary change keep whatever category/subject they were stored with.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Vocabulary(BaseModel):
    """
    Categories plus a many-to-one mapping of subjects onto categories.

    `fallback_category` accepts subjects that are not in the lookup table
    (the catch-all "Lainnya" bucket in the default vocabulary).
    """

    categories: List[str] = Field(default_factory=list)
    subject_categories: Dict[str, str] = Field(default_factory=dict)
    fallback_category: Optional[str] = None

    @property
    def subjects(self) -> List[str]:
        return list(self.subject_categories.keys())

    def category_for(self, subject: str) -> Optional[str]:
        return self.subject_categories.get(subject)

    def check(self, category: str, subject: str) -> Optional[str]:
        """
        Returns a human-readable problem description, or None if the pair is valid.

        Rules:
            1. category must be one of `categories`
            2. a known subject must belong to the given category
            3. an unknown subject is only accepted under `fallback_category`
        """
        if category not in self.categories:
            return (
                f"Category '{category}' is not recognised. "
                f"Allowed: {', '.join(self.categories)}"
            )

        expected = self.category_for(subject)
        if expected is None:
            if self.fallback_category and category == self.fallback_category:
                return None
            return f"Subject '{subject}' is not recognised for category '{category}'"

        if expected != category:
            return f"Subject '{subject}' belongs to category '{expected}', not '{category}'"
        return None


DEFAULT_VOCABULARY = Vocabulary(
    categories=["Matematika", "Komputer", "Ekonomi", "Lainnya"],
    subject_categories={
        "Probability & Statistics": "Matematika",
        "Discrete Math": "Matematika",
        "Calculus": "Matematika",
        "Programming Concepts": "Komputer",
        "Web Programming": "Komputer",
        "Computer Network": "Komputer",
        "Economic Survival": "Ekonomi",
    },
    fallback_category="Lainnya",
)
