"""
Built-in seed skills for a fresh dictionary.

Each entry is (canonical name, layer, variations).
"""

from typing import List, Optional, Tuple

from .dictionary import Clock, SkillDictionary

SEED_SKILLS: List[Tuple[str, str, Tuple[str, ...]]] = [
    # frontend
    ("react", "frontend", ("reactjs", "react.js")),
    ("vue", "frontend", ("vuejs", "vue.js")),
    ("angular", "frontend", ("angularjs",)),
    ("svelte", "frontend", ("sveltejs",)),
    ("next.js", "frontend", ("nextjs",)),
    ("redux", "frontend", ("redux-toolkit", "rtk")),
    ("javascript", "frontend", ("js", "ecmascript", "es6")),
    ("typescript", "frontend", ("ts",)),
    ("html", "frontend", ("html5",)),
    ("css", "frontend", ("css3",)),
    ("tailwind", "frontend", ("tailwindcss",)),
    ("sass", "frontend", ("scss",)),
    ("webpack", "frontend", ()),
    ("vite", "frontend", ()),
    ("jest", "frontend", ()),
    ("cypress", "frontend", ()),
    # backend
    ("node.js", "backend", ("nodejs", "node")),
    ("express", "backend", ("expressjs", "express.js")),
    ("nestjs", "backend", ("nest.js",)),
    ("python", "backend", ("python3", "py")),
    ("django", "backend", ()),
    ("flask", "backend", ()),
    ("fastapi", "backend", ()),
    ("java", "backend", ()),
    ("spring boot", "backend", ("spring-boot", "springboot")),
    ("go", "backend", ("golang",)),
    ("rust", "backend", ()),
    ("c#", "backend", ("csharp", "c sharp")),
    ("dotnet", "backend", (".net", ".net core", "asp.net")),
    ("ruby on rails", "backend", ("rails", "ror")),
    ("php", "backend", ()),
    ("graphql", "backend", ()),
    # database
    ("postgresql", "database", ("postgres", "psql")),
    ("mysql", "database", ()),
    ("mongodb", "database", ("mongo",)),
    ("redis", "database", ()),
    ("sqlite", "database", ()),
    ("elasticsearch", "database", ("elastic search",)),
    ("dynamodb", "database", ("dynamo",)),
    ("cassandra", "database", ()),
    # cloud
    ("aws", "cloud", ("amazon web services",)),
    ("azure", "cloud", ("microsoft azure",)),
    ("gcp", "cloud", ("google cloud", "google cloud platform")),
    ("lambda", "cloud", ("aws lambda",)),
    ("s3", "cloud", ("aws s3",)),
    ("firebase", "cloud", ()),
    ("vercel", "cloud", ()),
    # devops
    ("docker", "devops", ()),
    ("kubernetes", "devops", ("k8s",)),
    ("terraform", "devops", ()),
    ("ansible", "devops", ()),
    ("jenkins", "devops", ()),
    ("github actions", "devops", ("gh actions",)),
    ("gitlab ci", "devops", ("gitlab-ci",)),
    ("prometheus", "devops", ()),
    ("grafana", "devops", ()),
    # others
    ("git", "others", ()),
    ("agile", "others", ("scrum",)),
    ("jira", "others", ()),
    ("rest api", "others", ("rest", "restful")),
    ("microservices", "others", ("microservice",)),
    ("machine learning", "others", ("ml",)),
]


def build_seed_dictionary(version: str, clock: Optional[Clock] = None) -> SkillDictionary:
    dictionary = SkillDictionary.create(version, clock=clock)
    for name, category, variations in SEED_SKILLS:
        dictionary.add_canonical_skill(name, category)
        for variation in variations:
            dictionary.add_skill_variation(variation, name)
    return dictionary
