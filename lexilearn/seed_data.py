"""Fixed baseline content used by the seed generator"""

ADMIN_USER = {
    "id": "admin_1",
    "display_name": "Admin User",
    "email": "admin@lexilearn.com",
    "password_secret": "admin123",
    "role": "admin",
    "profile_image_ref": "https://ui-avatars.com/api/?name=Admin+User&background=EF4444",
}

# (id, name, email, days since joining, hours since last active)
BASELINE_STUDENTS = [
    ("student_1", "Alice Johnson", "alice@student.com", 90, 2),
    ("student_2", "Bob Smith", "bob@student.com", 60, 5),
    ("student_3", "Carol Williams", "carol@student.com", 45, 24),
    ("student_4", "David Brown", "david@student.com", 30, 0),
    ("student_5", "Emma Davis", "emma@student.com", 20, 3),
    ("student_6", "Frank Miller", "frank@student.com", 15, 10),
    ("student_7", "Grace Lee", "grace@student.com", 10, 0.5),
]

# (id, name, email, subject, days since joining)
BASELINE_TEACHERS = [
    ("teacher_1", "Dr. Sarah Anderson", "teacher@school.com", "Mathematics", 365),
    ("teacher_2", "Prof. Daniel Reyes", "daniel@school.com", "Computer Science", 200),
]

SEEDED_USER_IDS = frozenset(
    [ADMIN_USER["id"]] + [s[0] for s in BASELINE_STUDENTS] + [t[0] for t in BASELINE_TEACHERS]
)

DEFAULT_PASSWORD = "password123"

DEFAULT_PLATFORM_SETTINGS = {
    "subscription_pricing": {
        "monthly": 29.99,
        "quarterly": 79.99,
        "yearly": 299.99,
    },
    "teacher_hourly_rate": 50,
    "currency": "USD",
    "timezone": "UTC",
    "platform_name": "LexiLearn",
    "platform_email": "support@lexilearn.com",
}

# Completion fraction per baseline student, cycled for students beyond the list
PROGRESS_PROFILE = [0.85, 0.65, 0.45, 0.75, 0.90, 0.35, 0.55]


def _lessons(module_no, entries):
    return [
        {
            "id": f"lesson_{module_no}_{i}",
            "title": title,
            "duration_minutes": minutes,
            "media_ref": f"https://youtube.com/watch?v=m{module_no}l{i}",
            "order": i,
        }
        for i, (title, minutes) in enumerate(entries, 1)
    ]


MODULE_CATALOGUE = [
    {
        "id": "module_1",
        "title": "Mathematics Fundamentals",
        "description": "Master the basics of algebra, geometry, and calculus",
        "level": "Beginner",
        "assigned_teacher_ids": ["teacher_1"],
        "lessons": _lessons(1, [
            ("Introduction to Algebra", 45), ("Linear Equations", 60), ("Quadratic Equations", 75),
            ("Functions and Graphs", 90), ("Polynomials", 60), ("Geometry Basics", 50),
            ("Triangles and Angles", 55), ("Circles and Arcs", 65), ("Introduction to Calculus", 80),
            ("Derivatives", 90), ("Integrals", 85), ("Applications of Calculus", 70),
        ]),
        "resources": [
            {"id": "res_1_1", "title": "Algebra Cheat Sheet", "type": "pdf",
             "url": "/resources/algebra-cheat-sheet.pdf", "lesson_ref": "lesson_1_1"},
            {"id": "res_1_2", "title": "Khan Academy: Calculus", "type": "link",
             "url": "https://www.khanacademy.org/math/calculus-1", "lesson_ref": None},
        ],
    },
    {
        "id": "module_2",
        "title": "Physics: Motion & Energy",
        "description": "Explore the laws of motion, energy, and thermodynamics",
        "level": "Intermediate",
        "assigned_teacher_ids": ["teacher_1"],
        "lessons": _lessons(2, [
            ("Newton's Laws of Motion", 60), ("Kinematics", 55), ("Force and Acceleration", 65),
            ("Work and Energy", 70), ("Power and Efficiency", 50), ("Thermodynamics Basics", 75),
            ("Heat Transfer", 60), ("Waves and Sound", 65), ("Light and Optics", 70),
            ("Electricity and Magnetism", 80),
        ]),
        "resources": [
            {"id": "res_2_1", "title": "Formula Sheet", "type": "pdf",
             "url": "/resources/physics-formulas.pdf", "lesson_ref": None},
        ],
    },
    {
        "id": "module_3",
        "title": "Computer Science Basics",
        "description": "Introduction to programming, algorithms, and data structures",
        "level": "Beginner",
        "assigned_teacher_ids": ["teacher_2"],
        "lessons": _lessons(3, [
            ("Introduction to Programming", 90), ("Variables and Data Types", 60), ("Control Structures", 75),
            ("Functions and Methods", 80), ("Arrays and Lists", 70), ("Object-Oriented Programming", 90),
            ("Data Structures: Stacks & Queues", 85), ("Trees and Graphs", 95), ("Sorting Algorithms", 80),
            ("Searching Algorithms", 75), ("Recursion", 70), ("Algorithm Complexity", 65),
            ("Dynamic Programming", 90), ("Graph Algorithms", 85), ("Final Project", 120),
        ]),
        "resources": [
            {"id": "res_3_1", "title": "Python Documentation", "type": "link",
             "url": "https://docs.python.org/3/", "lesson_ref": "lesson_3_1"},
            {"id": "res_3_2", "title": "Big-O Chart", "type": "image",
             "url": "/resources/big-o-chart.png", "lesson_ref": "lesson_3_12"},
        ],
    },
    {
        "id": "module_4",
        "title": "Chemistry: Atoms & Molecules",
        "description": "Understanding chemical reactions and molecular structures",
        "level": "Intermediate",
        "assigned_teacher_ids": [],
        "lessons": _lessons(4, [
            ("Atomic Structure", 60), ("Periodic Table", 55), ("Chemical Bonding", 70),
            ("Molecular Geometry", 65), ("Chemical Reactions", 75), ("Stoichiometry", 80),
            ("Acids and Bases", 60), ("Redox Reactions", 70), ("Organic Chemistry Basics", 85),
            ("Polymers", 65), ("Chemical Equilibrium", 75),
        ]),
        "resources": [],
    },
    {
        "id": "module_5",
        "title": "English Literature",
        "description": "Analyze classic and modern literary works",
        "level": "Beginner",
        "assigned_teacher_ids": ["teacher_2"],
        "lessons": _lessons(5, [
            ("Introduction to Literature", 50), ("Poetry Analysis", 60), ("Shakespeare's Works", 90),
            ("Victorian Literature", 75), ("Modern Fiction", 70), ("Literary Criticism", 65),
            ("Narrative Techniques", 60), ("Comparative Literature", 80),
        ]),
        "resources": [
            {"id": "res_5_1", "title": "Glossary of Literary Terms", "type": "pdf",
             "url": "/resources/literary-terms.pdf", "lesson_ref": "lesson_5_6"},
        ],
    },
    {
        "id": "module_6",
        "title": "World History",
        "description": "Journey through major events that shaped our world",
        "level": "Advanced",
        "assigned_teacher_ids": [],
        "lessons": _lessons(6, [
            ("Ancient Civilizations", 70), ("Greek and Roman Empire", 75), ("Medieval Europe", 65),
            ("Renaissance Period", 70), ("Age of Exploration", 60), ("Industrial Revolution", 75),
            ("World War I", 80), ("World War II", 85), ("Cold War Era", 70),
            ("Modern History", 65), ("Asian History", 75), ("African History", 70),
            ("American History", 80), ("Contemporary Issues", 60),
        ]),
        "resources": [],
    },
]
