"""Study planner: weekly class timetable, tasks, calendar and reminders."""
