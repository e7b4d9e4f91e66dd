# catalog.py
# Static movie catalog backing the movie tools. Read-only.

from pydantic import BaseModel


class Movie(BaseModel):
    id: str
    title: str
    genre: str
    year: int
    rating: float
    director: str
    cast: list[str]
    runtime_min: int

    def matches(self, query: str) -> bool:
        """Case-insensitive match against title, genre, director or any cast member."""
        needle = query.lower()
        return (
            needle in self.title.lower()
            or needle in self.genre.lower()
            or needle in self.director.lower()
            or any(needle in actor.lower() for actor in self.cast)
        )


MOVIES: tuple[Movie, ...] = (
    Movie(
        id="m1",
        title="Inception",
        genre="Sci-Fi",
        year=2010,
        rating=8.8,
        director="Christopher Nolan",
        cast=["Leonardo DiCaprio", "Joseph Gordon-Levitt", "Ellen Page"],
        runtime_min=148,
    ),
    Movie(
        id="m2",
        title="Interstellar",
        genre="Sci-Fi",
        year=2014,
        rating=8.6,
        director="Christopher Nolan",
        cast=["Matthew McConaughey", "Anne Hathaway", "Jessica Chastain"],
        runtime_min=169,
    ),
    Movie(
        id="m3",
        title="The Dark Knight",
        genre="Action",
        year=2008,
        rating=9.0,
        director="Christopher Nolan",
        cast=["Christian Bale", "Heath Ledger", "Aaron Eckhart"],
        runtime_min=152,
    ),
    Movie(
        id="m4",
        title="La La Land",
        genre="Romance",
        year=2016,
        rating=8.0,
        director="Damien Chazelle",
        cast=["Ryan Gosling", "Emma Stone", "John Legend"],
        runtime_min=128,
    ),
    Movie(
        id="m5",
        title="The Social Network",
        genre="Drama",
        year=2010,
        rating=7.7,
        director="David Fincher",
        cast=["Jesse Eisenberg", "Andrew Garfield", "Justin Timberlake"],
        runtime_min=120,
    ),
)


def find_movie(movie_id: str) -> Movie | None:
    for movie in MOVIES:
        if movie.id == movie_id:
            return movie
    return None
